"""
Límites del sistema.

Máximos razonables para proteger la base de datos de abusos.
"""

MAX_HABITS_PER_USER = 50      # Hábitos que puede tener un usuario
MAX_TASKS_PER_USER = 200      # Tareas por usuario
MAX_FRIENDS = 100             # Amistades aceptadas por usuario

PASSWORD_MIN_LENGTH = 8
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"   # Solo letras, números y guiones bajos

ADMIN_PAGE_SIZE = 20          # Usuarios por página en /admin/users
ADMIN_MAX_PAGE_SIZE = 100
