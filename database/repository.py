from sqlalchemy.orm import Session

from database.repositories import (
    StudentRepository,
    CompanyRepository,
    PostingRepository,
    MatchRepository,
)


class MatchingRepository:
    """Groups the repositories the matching engine needs around one Session."""

    def __init__(self, db: Session):
        self.db = db
        self.students = StudentRepository(db)
        self.companies = CompanyRepository(db)
        self.postings = PostingRepository(db)
        self.matches = MatchRepository(db)
