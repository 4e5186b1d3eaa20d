"""Runtime type checking shared by the package.

Parameters annotated ``float`` also accept ``int`` (the PEP 484 implicit
numeric tower), so times, durations and angles can be written as
``3600`` or ``(90, 0, 0)``.
"""

from beartype import BeartypeConf, beartype

typechecked = beartype(conf=BeartypeConf(is_pep484_tower=True))
