import logging
from io import BytesIO
from typing import List, Sequence, Tuple

import pandas as pd
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from quizlink import models, schemas

logger = logging.getLogger(__name__)


class NotFound(LookupError):
    """No test row matches the requested identifier."""


class StoreError(Exception):
    """The database was unreachable or a query failed."""


async def create_test(db: AsyncSession, title: str, questions: Sequence[schemas.QuestionIn]) -> models.Test:
    test = models.Test(
        title=title,
        questions=[question.model_dump() for question in questions],
    )
    try:
        db.add(test)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating test: {str(e)}", exc_info=True)
        raise StoreError("Error creating test") from e
    logger.info(f"Created test {test.id} with {len(questions)} questions")
    return test


def _valid_id(test_id: int) -> bool:
    return 1 <= test_id <= schemas.MAX_ID


async def get_test(db: AsyncSession, test_id: int) -> models.Test:
    if not _valid_id(test_id):
        raise NotFound(f"Test {test_id} not found")
    try:
        result = await db.execute(
            select(models.Test).filter(models.Test.id == test_id)
        )
        test = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching test {test_id}: {str(e)}", exc_info=True)
        raise StoreError("Error fetching test") from e

    if test is None:
        raise NotFound(f"Test {test_id} not found")
    return test


def stored_questions(test: models.Test) -> List[schemas.QuestionIn]:
    """Validate the question blob read back from the database."""
    try:
        return [schemas.QuestionIn.model_validate(question) for question in test.questions]
    except ValidationError as e:
        logger.error(f"Test {test.id} has malformed questions: {str(e)}")
        raise StoreError("Stored test is malformed") from e


async def create_result(
    db: AsyncSession,
    test_id: int,
    student_name: str,
    student_group: str,
    score: int,
) -> models.Result:
    result = models.Result(
        test_id=test_id,
        student_name=student_name,
        student_group=student_group,
        score=score,
    )
    try:
        db.add(result)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving result for test {test_id}: {str(e)}", exc_info=True)
        raise StoreError("Error saving results") from e
    logger.info(f"Saved result for test {test_id}: {student_group}/{student_name} scored {score}")
    return result


async def list_results(db: AsyncSession, test_id: int) -> List[models.Result]:
    """All results for a test, grouped by class and then student name."""
    if not _valid_id(test_id):
        return []
    try:
        result = await db.execute(
            select(models.Result)
            .where(models.Result.test_id == test_id)
            .order_by(
                models.Result.student_group,
                models.Result.student_name,
                models.Result.id,
            )
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching results for test {test_id}: {str(e)}", exc_info=True)
        raise StoreError("Error fetching results") from e
    return list(result.scalars().all())


async def summarize_groups(db: AsyncSession, test_id: int) -> List[schemas.GroupSummary]:
    if not _valid_id(test_id):
        return []
    try:
        result = await db.execute(
            select(
                models.Result.student_group,
                func.count(models.Result.id).label("submissions"),
                func.avg(models.Result.score).label("average_score"),
                func.max(models.Result.score).label("best_score"),
            )
            .where(models.Result.test_id == test_id)
            .group_by(models.Result.student_group)
            .order_by(models.Result.student_group)
        )
        rows = result.all()
    except SQLAlchemyError as e:
        logger.error(f"Error summarizing results for test {test_id}: {str(e)}", exc_info=True)
        raise StoreError("Error fetching results") from e

    return [
        schemas.GroupSummary(
            student_group=row.student_group,
            submissions=row.submissions,
            average_score=round(float(row.average_score), 2),
            best_score=row.best_score,
        )
        for row in rows
    ]


async def export_results(db: AsyncSession, test_id: int) -> Tuple[BytesIO, str]:
    """
    Export the results of a test to an Excel workbook.
    Returns a tuple of (BytesIO containing the file, filename).
    """
    test = await get_test(db, test_id)
    results = await list_results(db, test_id)
    groups = await summarize_groups(db, test_id)

    data = []
    for count, record in enumerate(results, start=1):
        submitted = record.created_at
        if submitted is not None and submitted.tzinfo is not None:
            # Excel has no notion of timezones
            submitted = submitted.replace(tzinfo=None)
        data.append({
            '№': count,
            'Name': record.student_name,
            'Group': record.student_group,
            'Score': record.score,
            'Submitted at': submitted,
        })
    df = pd.DataFrame(data, columns=['№', 'Name', 'Group', 'Score', 'Submitted at'])

    summary = pd.DataFrame(
        [group.model_dump() for group in groups],
        columns=['student_group', 'submissions', 'average_score', 'best_score'],
    ).rename(columns={
        'student_group': 'Group',
        'submissions': 'Submissions',
        'average_score': 'Average score',
        'best_score': 'Best score',
    })

    max_score = sum(question.score for question in stored_questions(test))

    output = BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df.to_excel(writer, index=False, sheet_name='Results')
        summary.to_excel(writer, index=False, sheet_name='Groups')

        worksheet = writer.sheets['Results']
        worksheet.write(len(df) + 2, 0, f"{test.title} (max score {max_score})")

        # Auto-adjust column widths
        for sheet_name, frame in (('Results', df), ('Groups', summary)):
            sheet = writer.sheets[sheet_name]
            for i, col in enumerate(frame.columns):
                values = frame[col].astype(str).map(len)
                longest = values.max() if not values.empty else 0
                sheet.set_column(i, i, max(longest, len(col)) + 2)

    output.seek(0)
    filename = f"test_{test_id}_results.xlsx"
    return output, filename
