"""Read only models over separated text files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pandas as pd

from openmodel.core.exceptions import StorageError

from .array_model import ArrayModelAbstract

if TYPE_CHECKING:
    from openmodel.model.meta_model import MetaModel

logger = logging.getLogger(__name__)


class CsvModel(ArrayModelAbstract):
    """
    Model over a CSV file whose first line holds the field names.

    All values load as strings, empty cells as ''. The column position of
    every field is stored in its read_position setting.
    """

    def __init__(
        self,
        file_name: str | Path,
        meta_model: MetaModel,
        encoding: str | None = None,
        separator: str = ",",
    ):
        super().__init__(meta_model)
        self.file_name = Path(file_name)
        self.encoding = encoding
        self.separator = separator

    def _load_all(self) -> list[dict[str, Any]]:
        try:
            df = pd.read_csv(
                self.file_name,
                sep=self.separator,
                encoding=self.encoding or "utf-8",
                dtype=str,
                keep_default_na=False,
            )
        except pd.errors.EmptyDataError:
            logger.debug(f"Empty data file {self.file_name}")
            return []
        except OSError as e:
            raise StorageError(
                f"Cannot read {self.file_name}: {e}",
                table=str(self.file_name),
                model=self.get_name(),
                operation="load",
            ) from e

        for position, name in enumerate(df.columns):
            self.meta_model.set(name, "read_position", position)

        rows = df.to_dict("records")
        logger.debug(f"Read {len(rows)} rows from {self.file_name}")
        return rows


class TabbedTextModel(CsvModel):
    """CsvModel for tab separated text files."""

    def __init__(self, file_name: str | Path, meta_model: MetaModel, encoding: str | None = None):
        super().__init__(file_name, meta_model, encoding, separator="\t")
