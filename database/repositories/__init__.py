from database.repositories.base import BaseRepository
from database.repositories.profile import StudentRepository, CompanyRepository, PostingRepository
from database.repositories.match import MatchRepository

__all__ = [
    'BaseRepository',
    'StudentRepository',
    'CompanyRepository',
    'PostingRepository',
    'MatchRepository',
]
