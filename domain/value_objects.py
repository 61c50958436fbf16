"""Domain Value Objects"""
from pydantic import BaseModel, validator
from datetime import date

from domain.pricing import DateLike, as_date, calculate_nights


class DateRange(BaseModel):
    """Half-open stay interval: the check-out date itself is not occupied"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    @classmethod
    def between(cls, check_in: DateLike, check_out: DateLike) -> "DateRange":
        """Build a range, raising the domain ValidationError on bad order"""
        calculate_nights(check_in, check_out)
        return cls(check_in=as_date(check_in), check_out=as_date(check_out))

    def nights(self) -> int:
        """Calculate number of nights"""
        return calculate_nights(self.check_in, self.check_out)

    def overlaps(self, other: "DateRange") -> bool:
        """True when both stays need the room on at least one common night"""
        return self.check_in < other.check_out and other.check_in < self.check_out

    class Config:
        frozen = True
