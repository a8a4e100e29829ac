"""
=============================================================================
ERRORS.PY — Errores del dominio
=============================================================================
Errores específicos del negocio, cada uno con su código HTTP asociado.
Los lanzan los modelos (al asignar un valor inválido) y los servicios
(gamification, social, endpoints). main.py los convierte en respuestas
JSON con un exception handler:

  raise ReferenceNotFound("Hábito", habit_id)
  → HTTP 404: {"detail": "Hábito no encontrado (id=7)", "code": "NOT_FOUND"}

Jerarquía:
  GoHabitError
    ├── ReferenceNotFound (404)
    ├── InvalidValue      (400)
    ├── Forbidden         (403)
    └── Conflict          (409)
"""


class GoHabitError(Exception):
    """Error base de la aplicación"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ReferenceNotFound(GoHabitError):
    """La entidad referenciada no existe (o no pertenece al usuario)"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} no encontrado"
        if identifier is not None:
            message += f" (id={identifier})"
        super().__init__(message, {"resource": resource, "id": identifier})
        self.resource = resource
        self.identifier = identifier


class InvalidValue(GoHabitError):
    """Un campo recibe un valor fuera de su dominio"""

    status_code = 400
    code = "INVALID_VALUE"

    def __init__(self, field: str, value, message: str | None = None):
        msg = message or f"Valor inválido para '{field}': {value!r}"
        super().__init__(msg, {"field": field, "value": str(value)})
        self.field = field
        self.value = value


class Conflict(GoHabitError):
    """El recurso ya existe o choca con otro"""

    status_code = 409
    code = "CONFLICT"


class Forbidden(GoHabitError):
    """El usuario está autenticado pero no tiene permiso"""

    status_code = 403
    code = "FORBIDDEN"
