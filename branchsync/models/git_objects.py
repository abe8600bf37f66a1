"""Git data primitives used by the branch sync workflow"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

REF_PREFIX = "refs/heads/"
REGULAR_FILE_MODE = "100644"


def branch_ref(name: str) -> str:
    """Return the fully qualified ref for a branch name."""
    if name.startswith(REF_PREFIX):
        return name
    return f"{REF_PREFIX}{name}"


class BranchReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    ref: str
    sha: str

    @classmethod
    def from_api(cls, payload: dict) -> "BranchReference":
        return cls(ref=payload["ref"], sha=payload["object"]["sha"])


class TreeEntry(BaseModel):
    path: str
    sha: str
    mode: str = REGULAR_FILE_MODE
    type: str = "blob"


class ContentChange(BaseModel):
    """A single-file change pushed to the target branch.

    ``content``/``message`` are used when a commit is appended to an existing
    branch; ``initial_content``/``initial_message`` when the branch is freshly
    created and the file is written through the contents endpoint.
    """

    path: str
    content: str
    message: str = "Update content"
    initial_content: Optional[str] = None
    initial_message: Optional[str] = None
    mode: str = Field(default=REGULAR_FILE_MODE)

    @property
    def bootstrap_content(self) -> str:
        return self.initial_content if self.initial_content is not None else self.content

    @property
    def bootstrap_message(self) -> str:
        return self.initial_message or self.message
