"""
=============================================================================
DATABASE.PY — Configuración de la Base de Datos
=============================================================================
Este archivo configura la conexión a la base de datos de GoHabit.

En DESARROLLO: usa SQLite (un archivo gohabit.db)
En PRODUCCIÓN: usa PostgreSQL

¿Cómo sabe cuál usar?
→ Si existe la variable de entorno DATABASE_URL, usa esa URL.
→ Si no existe, usa SQLite local.

Los tests usan DATABASE_URL="sqlite://" (SQLite en memoria).
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# ─────────────────────────────────────────────────────────────────────────────
# CONEXIÓN
# ─────────────────────────────────────────────────────────────────────────────

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gohabit.db")

# Algunos proveedores dan la URL con "postgres://" pero SQLAlchemy necesita
# "postgresql://". Además usamos psycopg (v3) como driver.
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)

IS_SQLITE = DATABASE_URL.startswith("sqlite")

# ─────────────────────────────────────────────────────────────────────────────
# ENGINE (Motor de la base de datos)
# ─────────────────────────────────────────────────────────────────────────────
# connect_args={"check_same_thread": False} → solo para SQLite, que no permite
# acceso desde múltiples hilos por defecto (FastAPI ejecuta endpoints
# síncronos en un pool de hilos).

engine_args = {}
if IS_SQLITE:
    engine_args["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # Una BD en memoria vive dentro de UNA conexión: todas las sesiones
        # tienen que compartirla.
        engine_args["poolclass"] = StaticPool

engine = create_engine(DATABASE_URL, echo=False, **engine_args)


if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        # SQLite ignora las FOREIGN KEY salvo que se activen en cada conexión
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ─────────────────────────────────────────────────────────────────────────────
# SESSION y BASE
# ─────────────────────────────────────────────────────────────────────────────
# SessionLocal es una "fábrica" de sesiones. Todos los modelos heredan de Base.

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Generador que crea una sesión de BD y la cierra al terminar.

    Se usa como "dependencia" en FastAPI:
      @app.get("/algo")
      def mi_endpoint(db: Session = Depends(get_db)):
          ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Crea todas las tablas en la BD si no existen.
    Se llama una vez al arrancar la aplicación.

    Base.metadata.create_all → lee todos los modelos que heredan de Base
    (tienen que estar importados) y crea sus tablas en la BD.
    """
    Base.metadata.create_all(bind=engine)
