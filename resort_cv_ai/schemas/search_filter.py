"""Demographic filters for CV search."""

from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class DemographicFilter(BaseModel):
    """
    Filters on the scalar fields promoted onto CV records. Names and department
    match case-insensitively anywhere in the value; ranges are inclusive.
    """

    first_name: Optional[str] = Field(default=None, description="Partial first name")
    last_name: Optional[str] = Field(default=None, description="Partial last name")
    department: Optional[str] = Field(default=None, description="Partial department name")
    age: Optional[Tuple[float, float]] = Field(default=None, description="Inclusive (min, max) age")
    expected_salary: Optional[Tuple[float, float]] = Field(default=None, description="Inclusive (min, max) salary")

    @model_validator(mode="after")
    def _ordered_ranges(self) -> "DemographicFilter":
        for name in ("age", "expected_salary"):
            bounds = getattr(self, name)
            if bounds is not None and bounds[0] > bounds[1]:
                raise ValueError(f"{name} range minimum is greater than maximum: {bounds}")
        return self

    def is_empty(self) -> bool:
        return not any(
            (self.first_name, self.last_name, self.department, self.age is not None, self.expected_salary is not None)
        )
