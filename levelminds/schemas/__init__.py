from levelminds.schemas.common import APIResponse, envelope, page_info
from levelminds.schemas.skill import (
    CoreSkillCreate, CoreSkillUpdate, CategoryCreate, SubSkillMark, SubSkillMarksUpload
)
from levelminds.schemas.job import JobCreate, JobStatusUpdate
from levelminds.schemas.application import ApplicationForm, ApplicationStatusUpdate
from levelminds.schemas.interview import InterviewSchedule
from levelminds.schemas.bulk import FailedRow, BulkUserCreateResult, BulkMarksUploadResult
from levelminds.schemas.user import PasswordReset
