"""
Import summary schemas.
"""
from pydantic import BaseModel
from typing import List


class ImportSummaryResponse(BaseModel):
    success: bool = True
    message: str
    total_rows: int
    processed: int
    inserted: int
    skipped: int
    duplicates: int
    failed: int
    no_id: int
    upload_batch: str
    category: str
    columns_found: List[str]  # Lets users spot headers no alias matched
    cancelled: bool = False

    class Config:
        from_attributes = True
