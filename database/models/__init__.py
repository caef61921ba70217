from .base import Base, JSONType, utcnow
from .profile import Student, StudentSkill, StudentIndustryPreference, StudentEducation, Company, Job, Internship
from .match import StudentCompanyMatch, MatchInteraction, MATCH_STATUSES, MATCH_TYPES, PERFORMERS

__all__ = [
    'Base',
    'JSONType',
    'utcnow',
    'Student',
    'StudentSkill',
    'StudentIndustryPreference',
    'StudentEducation',
    'Company',
    'Job',
    'Internship',
    'StudentCompanyMatch',
    'MatchInteraction',
    'MATCH_STATUSES',
    'MATCH_TYPES',
    'PERFORMERS',
]
