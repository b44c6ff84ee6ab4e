# ids.py
# Генерация идентификаторов. Серверные id имеют вид p_3f2a...,
# а выданные при работе с локальным хранилищем несут пространство local: p_local_3f2a...
# Так два пространства никогда не пересекаются.

import re
import uuid

KINDS = ('p', 'j', 'c', 's')
LOCAL_NAMESPACE = 'local'

_ID_RE = re.compile(r'^(?P<kind>[a-z])_(?:(?P<ns>local)_)?(?P<token>[0-9a-f]{32})$')


def new_id(kind, local=False):
    if kind not in KINDS:
        raise ValueError(f'Unknown id kind: {kind!r}')
    token = uuid.uuid4().hex
    if local:
        return f'{kind}_{LOCAL_NAMESPACE}_{token}'
    return f'{kind}_{token}'


def is_local_id(value):
    match = _ID_RE.match(value or '')
    return bool(match and match.group('ns'))
