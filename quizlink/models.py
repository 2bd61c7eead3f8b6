from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from quizlink.database import Base


class Test(Base):
    __tablename__ = 'tests'

    # Also the public link token: /quiz/<id>
    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)

    # Ordered question list, answers already normalized
    questions = Column(
        JSON().with_variant(JSONB(), 'postgresql'),
        nullable=False,
        comment="Stores questions as [{'text': '2+2?', 'answer': '4', 'score': 1}, ...]"
    )


class Result(Base):
    __tablename__ = 'results'

    id = Column(Integer, primary_key=True, index=True)

    test_id = Column(Integer, ForeignKey('tests.id'), index=True)

    student_name = Column(String(255), nullable=False)
    student_group = Column(String(255), nullable=False)

    # Computed once at submission time, never recomputed
    score = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
