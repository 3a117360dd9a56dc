"""
Student directory endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from cubicle_booking.api import deps
from cubicle_booking.schemas.student import ImportResult, StudentCreate, StudentResponse
from cubicle_booking.services import StudentDirectoryService, StudentImportService

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[StudentResponse])
def search_students(
    q: str = Query(default="", description="Name or control number fragment"),
    directory: StudentDirectoryService = Depends(deps.get_student_directory),
):
    """Search by name (case-insensitive) or control number; empty query lists everyone."""
    return directory.search(q).unwrap()


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def register_student(
    candidate: StudentCreate,
    directory: StudentDirectoryService = Depends(deps.get_student_directory),
):
    return directory.register(candidate).unwrap()


@router.get("/careers", response_model=List[str])
def list_careers(directory: StudentDirectoryService = Depends(deps.get_student_directory)):
    return directory.list_careers().unwrap()


@router.post("/import", response_model=ImportResult)
def import_students(
    file: UploadFile = File(...),
    importer: StudentImportService = Depends(deps.get_student_import),
):
    """Import a CSV or JSON roster, upserting by control number."""
    # One byte past the limit is enough to reject the upload
    content = file.file.read(importer.settings.MAX_UPLOAD_SIZE + 1)
    return importer.import_file(file.filename or "", content).unwrap()


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: str,
    directory: StudentDirectoryService = Depends(deps.get_student_directory),
):
    return directory.get(student_id).unwrap()
