from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Note: Models are imported through app.db.models so every table is
# registered on Base.metadata before create_all() or Alembic autogenerate
