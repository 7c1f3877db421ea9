"""
Astro configuration
Language options and runtime options, from defaults and ASTRO_* environment variables
"""

import os
from dataclasses import dataclass, replace
from typing import Optional


_TRUE_WORDS = {'1', 'true', 'yes', 'on'}
_FALSE_WORDS = {'0', 'false', 'no', 'off'}


@dataclass(frozen=True)
class AstroConfig:
    """Options shared by the parser, the symbol table and the interpreter

    modulo:        accept the `%` operator
    negation:      accept unary `-Primary`
    print_keyword: reserve `print` as a statement keyword; when False, `print`
                   is a procedure invoked with the call-statement form
    """
    modulo: bool = True
    negation: bool = True
    print_keyword: bool = True
    debug: bool = False
    log_level: str = "WARNING"


DEFAULT_CONFIG = AstroConfig()


def flag_from_env(var: str, default: bool) -> bool:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"{var} must be a boolean, got {raw!r}")


def config_from_env(base: Optional[AstroConfig] = None) -> AstroConfig:
    """Overlay ASTRO_* environment variables on `base` (defaults if None)"""
    base = base or DEFAULT_CONFIG
    debug = flag_from_env('ASTRO_DEBUG', base.debug)
    return replace(
        base,
        modulo=flag_from_env('ASTRO_MODULO', base.modulo),
        negation=flag_from_env('ASTRO_NEGATION', base.negation),
        print_keyword=flag_from_env('ASTRO_PRINT_KEYWORD', base.print_keyword),
        debug=debug,
        log_level=os.environ.get('ASTRO_LOG_LEVEL', "DEBUG" if debug else base.log_level).upper(),
    )
