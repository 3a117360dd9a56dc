"""
Roster file import.

Parses CSV and JSON student rosters into raw records and hands them to the
student directory for upsert.
"""

import csv
import io
import json
import os
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.core.exceptions import ImportFormatError, ValidationError
from cubicle_booking.schemas.student import ImportResult
from cubicle_booking.services.base import BaseService, ServiceResult
from cubicle_booking.services.student_directory_service import StudentDirectoryService

SUPPORTED_EXTENSIONS = (".csv", ".json")


def parse_csv(content: bytes, filename: Optional[str] = None) -> List[Dict[str, Any]]:
    """Read a UTF-8 CSV roster with a header row into row dictionaries."""
    try:
        text = content.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text))
        return [
            {(key or "").strip(): (value or "").strip() for key, value in row.items() if key is not None}
            for row in reader
        ]
    except (UnicodeDecodeError, csv.Error) as e:
        raise ImportFormatError("Error al leer el archivo CSV", filename) from e


def parse_json(content: bytes, filename: Optional[str] = None) -> List[Dict[str, Any]]:
    """Read a JSON array of student objects; anything that is not an object is ignored."""
    try:
        data = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ImportFormatError("Error al procesar el archivo JSON", filename) from e

    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def parse_import_file(filename: str, content: bytes) -> List[Dict[str, Any]]:
    """
    Parse a roster file according to its extension.

    Raises:
        ImportFormatError: Unsupported extension or unreadable content
    """
    extension = os.path.splitext(filename or "")[1].lower()
    if extension == ".csv":
        return parse_csv(content, filename)
    if extension == ".json":
        return parse_json(content, filename)
    raise ImportFormatError("Formato no soportado. Usa CSV o JSON", filename)


class StudentImportService(BaseService):
    """
    Imports student rosters from uploaded files.
    """

    def __init__(self, db_session: Session, settings: Optional[Settings] = None):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.directory = StudentDirectoryService(db_session, self.settings)

    def import_file(self, filename: str, content: bytes) -> ServiceResult[ImportResult]:
        try:
            if len(content) > self.settings.MAX_UPLOAD_SIZE:
                raise ValidationError(
                    f"El archivo excede el tamaño máximo de {self.settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB",
                    field_errors={"file": [f"{len(content)} bytes"]},
                )
            records = parse_import_file(filename, content)
        except Exception as e:
            return self._handle_exception(e, "parse import file", filename)

        self._logger.info(f"Parsed {len(records)} record(s) from {filename}")
        return self.directory.import_batch(records)
