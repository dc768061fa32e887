"""
Result shapes returned by the bulk ingestion endpoints
"""
from pydantic import BaseModel
from typing import List, Optional


class FailedRow(BaseModel):
    email: Optional[str] = None
    row: Optional[int] = None  # 1-based data row, header excluded
    reason: str


class BulkUserCreateResult(BaseModel):
    uploaded_count: int = 0
    failed_count: int = 0
    failed_details: List[FailedRow] = []
    successful_emails: List[str] = []
    failed_deliveries: List[str] = []  # Created, but the credential email bounced


class BulkMarksUploadResult(BaseModel):
    coreSkillName: str
    uploaded_count: int = 0
    failed_count: int = 0
    failed_details: List[FailedRow] = []
    successful_updates: List[str] = []
    
