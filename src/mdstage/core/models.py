"""Data models shared by the staging pipeline"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal, Optional

from pydantic import BaseModel, Field, model_validator


Confirm = Callable[[str], bool]


@dataclass(frozen=True)
class ImageRef:
    """An image reference found in a body: ![alt](path) or <img src="path" ...>."""
    kind:  Literal["md", "html"]
    start: int
    end:   int
    span:  str                  # full matched text
    alt:   str
    path:  str                  # raw path as written (bracket target or src value)


@dataclass(frozen=True)
class Substitution:
    start: int
    end:   int
    old:   str
    new:   str


@dataclass(frozen=True)
class ScheduledCopy:
    source: Path
    dest:   Path


@dataclass
class RelocationPlan:
    """Pure result of scanning a body: what to copy and what to rewrite."""
    copies:        list[ScheduledCopy] = field(default_factory=list)
    substitutions: list[Substitution]  = field(default_factory=list)
    missing:       list[Path]          = field(default_factory=list)


@dataclass
class RelocationResult:
    body:        str
    image_count: int
    copied:      list[ScheduledCopy] = field(default_factory=list)
    missing:     list[Path]          = field(default_factory=list)


@dataclass(frozen=True)
class Mismatch:
    """An image reference whose abbrlink segment differs from its post's abbrlink."""
    ref:      ImageRef
    abbrlink: str               # abbrlink segment found in the reference
    filename: str


class HeaderBlock(BaseModel):
    title:     str
    published: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    updated:   str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    tags:      list[str] = Field(min_length=1)
    toc:       bool = True
    lang:      str = "zh"
    abbrlink:  str = Field(pattern=r"^\S+$")


class AddOptions(BaseModel):
    """Inputs for the add and update commands."""
    source:             str
    subdirectory:       Optional[str] = None
    tags:               list[str] = Field(default_factory=list)
    title:              Optional[str] = None
    published:          Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    toc:                Optional[bool] = None
    lang:               Optional[str] = None
    abbrlink:           Optional[str] = Field(default=None, pattern=r"^\S+$")
    old_abbrlink:       Optional[str] = Field(default=None, pattern=r"^\S+$")
    update_image_links: bool = False
    skip_formatting:    bool = False

    @model_validator(mode="after")
    def _links_follow_abbrlink_change(self) -> "AddOptions":
        # an explicit old -> new pair always means the image links move too
        if self.abbrlink and self.old_abbrlink:
            self.update_image_links = True
        return self


@dataclass
class AddResult:
    target:         Path
    abbrlink:       Optional[str]
    image_count:    int = 0
    created_header: bool = False
    links_updated:  int = 0


@dataclass
class CheckOutcome:
    path:          Path
    skipped:       bool = False
    mismatches:    int = 0
    links_fixed:   bool = False
    date_fixed:    bool = False
    written:       bool = False


@dataclass
class CheckReport:
    checked:     int = 0
    skipped:     int = 0
    links_fixed: int = 0
    dates_fixed: int = 0
    outcomes:    list[CheckOutcome] = field(default_factory=list)


@dataclass
class CleanupReport:
    total:        int = 0
    unreferenced: list[Path] = field(default_factory=list)
    deleted:      int = 0
    pruned:       list[Path] = field(default_factory=list)
