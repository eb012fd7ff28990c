import os

_DEFAULTS = {
    'provider_history': False,
}

_FLAGS = dict(_DEFAULTS)


def init_flags():
    _FLAGS.clear()
    _FLAGS.update(_DEFAULTS)
    for key, val in os.environ.items():
        if key.startswith('FF_'):
            flag_name = key[3:].lower()
            _FLAGS[flag_name] = val.lower() in ('true', '1', 'yes')


def is_enabled(flag_name: str) -> bool:
    return _FLAGS.get(flag_name, False)


def set_flag(flag_name: str, value: bool):
    _FLAGS[flag_name] = value
