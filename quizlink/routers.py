# quizlink/routers.py
import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from quizlink import crud, schemas
from quizlink.crud import NotFound, StoreError
from quizlink.database import get_db
from quizlink.utils import grade_answers

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

router = APIRouter(prefix="/api")
pages = APIRouter()


def share_link(request: Request, test_id: int) -> str:
    settings = request.app.state.settings
    if settings.public_base_url:
        return f"{settings.public_base_url}/quiz/{test_id}"
    return str(request.url_for("quiz_page", test_id=str(test_id)))


@router.get("/health")
async def health():
    return {"message": "API is working", "docs": "/docs"}


@router.post("/tests", response_model=schemas.TestCreated)
async def create_test(payload: schemas.TestCreate, request: Request, db: AsyncSession = Depends(get_db)):
    try:
        test = await crud.create_test(db, payload.title, payload.questions)
    except StoreError:
        raise HTTPException(status_code=500, detail="Error creating test.")
    return schemas.TestCreated(test_id=test.id, link=share_link(request, test.id))


@router.get("/tests/{test_id}", response_model=schemas.TestPublic)
async def get_test(test_id: int, db: AsyncSession = Depends(get_db)):
    """Test as the student sees it: question text and weight, never the answer."""
    try:
        test = await crud.get_test(db, test_id)
        questions = [question.model_dump(include={"text", "score"}) for question in crud.stored_questions(test)]
        return schemas.TestPublic(title=test.title, questions=questions)
    except NotFound:
        raise HTTPException(status_code=404, detail="Test not found.")
    except StoreError:
        raise HTTPException(status_code=500, detail="Error fetching test.")


@router.post("/results", response_model=schemas.ResultSaved, status_code=201)
async def submit_result(payload: schemas.ResultCreate, db: AsyncSession = Depends(get_db)):
    if payload.answers is None and payload.score is None:
        raise HTTPException(status_code=400, detail="Missing required fields for result.")

    try:
        test = await crud.get_test(db, payload.test_id)
        questions = crud.stored_questions(test)
        if payload.answers is not None:
            score = grade_answers(questions, payload.answers)
        else:
            score = payload.score
            max_score = sum(question.score for question in questions)
            if score > max_score:
                raise HTTPException(
                    status_code=400,
                    detail=f"Score {score} exceeds the maximum of {max_score} for this test.",
                )
        await crud.create_result(
            db,
            test_id=test.id,
            student_name=payload.student_name,
            student_group=payload.student_group,
            score=score,
        )
    except NotFound:
        raise HTTPException(status_code=400, detail=f"Test {payload.test_id} does not exist.")
    except StoreError:
        raise HTTPException(status_code=500, detail="Error saving results.")

    return schemas.ResultSaved(message="Results saved successfully.", score=score)


@router.get("/tests/{test_id}/results", response_model=List[schemas.ResultOut])
async def list_results(test_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await crud.list_results(db, test_id)
    except StoreError:
        raise HTTPException(status_code=500, detail="Error fetching results.")


@router.get("/tests/{test_id}/results/summary", response_model=List[schemas.GroupSummary])
async def results_summary(test_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await crud.summarize_groups(db, test_id)
    except StoreError:
        raise HTTPException(status_code=500, detail="Error fetching results.")


@router.get("/tests/{test_id}/results/export")
async def export_results(test_id: int, db: AsyncSession = Depends(get_db)):
    """
    Export test results as an Excel file for a given test ID.
    """
    try:
        excel_file, filename = await crud.export_results(db, test_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Test not found.")
    except StoreError:
        raise HTTPException(status_code=500, detail="Error exporting results.")

    return Response(
        content=excel_file.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@pages.get("/", response_class=HTMLResponse)
async def instructor_page(request: Request):
    return templates.TemplateResponse(request, "instructor.html")


@pages.get("/quiz/{test_id}", response_class=HTMLResponse, name="quiz_page")
async def quiz_page(request: Request, test_id: str):
    return templates.TemplateResponse(request, "quiz.html", {"test_id": test_id})
