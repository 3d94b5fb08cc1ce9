from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for the canonical schema.

    The models describe the schema that migrations create.  Repositories
    never query through them: they introspect the live tables instead,
    because deployed databases drift from this shape.
    """
