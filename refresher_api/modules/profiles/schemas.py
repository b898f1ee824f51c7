from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated
from datetime import datetime


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class YearsAwayRange(str, Enum):
    LESS_THAN_1 = "less-than-1"
    ONE_TO_TWO = "1-2"
    THREE_TO_FIVE = "3-5"
    MORE_THAN_5 = "more-than-5"


# Stored value for each range offered by the setup form
YEARS_AWAY_BY_RANGE = {
    YearsAwayRange.LESS_THAN_1: 0,
    YearsAwayRange.ONE_TO_TWO: 2,
    YearsAwayRange.THREE_TO_FIVE: 5,
    YearsAwayRange.MORE_THAN_5: 10,
}

YearsAway = Annotated[int, Field(strict=True, ge=0, le=60)]


class ProfileCreate(BaseModel):
    experience_level: ExperienceLevel
    years_away: YearsAway


class ProfileSetupRequest(BaseModel):
    """Profile setup form, with the field names the web client sends"""
    model_config = ConfigDict(populate_by_name=True)

    experience_level: ExperienceLevel = Field(alias="experienceLevel")
    years_away: YearsAwayRange = Field(alias="yearsAway")

    def to_profile(self) -> ProfileCreate:
        return ProfileCreate(
            experience_level=self.experience_level,
            years_away=YEARS_AWAY_BY_RANGE[self.years_away],
        )


class ProfileResponse(BaseModel):
    id: str
    experience_level: ExperienceLevel
    years_away: int
    activity_streak: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileSetupResponse(BaseModel):
    success: bool = True
    redirect_url: str = Field("/dashboard", serialization_alias="redirectUrl")
