# (c) Copyright Datacraft, 2026
from .queries import QueryService
from .registrar import Registrar, get_registrar

__all__ = [
	"QueryService",
	"Registrar",
	"get_registrar",
]
