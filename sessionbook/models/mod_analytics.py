from datetime import date
from typing import Dict, List
from pydantic import BaseModel

class UtilizationReport(BaseModel):
    trainer_id: str
    start_date: date
    end_date: date
    available_hours: float
    booked_hours: float
    rate: float                         # fraction, 0.25 == 25%

class StreakReport(BaseModel):
    client_id: str
    current: int
    longest: int

class RetentionReport(BaseModel):
    trainer_id: str
    retained: int
    lost: int
    new: int
    rate: float                         # percent of previous-period clients retained

class BusyHour(BaseModel):
    hour: int
    count: int
    time: str

class ScheduleSummary(BaseModel):
    trainer_id: str
    start_date: date
    end_date: date
    total: int
    by_status: Dict[str, int]
    busiest_hours: List[BusyHour]
    utilization: UtilizationReport
