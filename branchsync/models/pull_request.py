"""Pull request metadata and annotation outcomes"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AnnotationStatus(str, Enum):

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class PullRequestMetadata(BaseModel):
    title: str
    body: str = ""
    reviewers: List[str] = Field(default_factory=list)
    assignee: Optional[str] = None
    label: Optional[str] = None


class PullRequestRef(BaseModel):
    number: int
    url: str
    api_url: str
    head: str
    base: str

    @classmethod
    def from_api(cls, payload: dict) -> "PullRequestRef":
        return cls(
            number=payload["number"],
            url=payload.get("html_url", ""),
            api_url=payload.get("url", ""),
            head=payload["head"]["ref"],
            base=payload["base"]["ref"],
        )


class FieldAnnotation(BaseModel):
    status: AnnotationStatus = AnnotationStatus.SKIPPED
    error: Optional[str] = None


class AnnotationResult(BaseModel):
    reviewers: FieldAnnotation = Field(default_factory=FieldAnnotation)
    assignee: FieldAnnotation = Field(default_factory=FieldAnnotation)
    label: FieldAnnotation = Field(default_factory=FieldAnnotation)

    def failures(self) -> dict[str, str]:
        return {
            name: annotation.error or "unknown error"
            for name, annotation in (
                ("reviewers", self.reviewers),
                ("assignee", self.assignee),
                ("label", self.label),
            )
            if annotation.status == AnnotationStatus.FAILED
        }
