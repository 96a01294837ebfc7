import json
import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from sqlworker.models.notebooks import Notebook, UserDatabase

from .errors import ConfigResolutionError
from .types import ExecutionContext

logger = logging.getLogger(__name__)


class ExecutionContextResolver:
    """Resolves notebook -> user database -> data source into an ExecutionContext."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def resolve(self, tenant_id: str) -> ExecutionContext:
        try:
            with self.session_factory() as db:
                notebook = db.execute(
                    select(Notebook)
                    .options(joinedload(Notebook.database).joinedload(UserDatabase.data_source))
                    .where(Notebook.id == tenant_id)
                ).scalar_one_or_none()

                if notebook is None:
                    raise ConfigResolutionError(f"Notebook {tenant_id} not found")
                database = notebook.database
                if database is None:
                    raise ConfigResolutionError(f"No database configuration found for notebook {tenant_id}")

                raw_config = database.connection_string
                source_name = database.data_source.name if database.data_source is not None else None
        except SQLAlchemyError as e:
            logger.error("Config store lookup failed for notebook %s: %r", tenant_id, e)
            raise ConfigResolutionError(f"Config store lookup failed for notebook {tenant_id}: {e}") from e

        try:
            db_config = json.loads(raw_config or "")
        except ValueError as e:
            raise ConfigResolutionError(
                f"Connection payload for notebook {tenant_id} is not valid JSON: {e}"
            ) from e
        if not isinstance(db_config, dict):
            raise ConfigResolutionError(f"Connection payload for notebook {tenant_id} is not a JSON object")

        db_type = (source_name or "").strip().lower()
        if not db_type:
            raise ConfigResolutionError(f"Data source type missing for notebook {tenant_id}")

        logger.info('Database config loaded for notebook %s: type is "%s"', tenant_id, db_type)
        return ExecutionContext(db_type=db_type, connection_params=db_config)
