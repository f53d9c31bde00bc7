"""
Data schemas for the effort engine.

Defines:
- SEEAttributes: the six COCOMO-style cost drivers
- ChinaAttributes: the eight function-point project metrics
- FeatureImportance: one entry of an explanation vector
- AttributeDescriptor: valid range / UI guidance for a single attribute
- Swimlane, Task: the persisted kanban rows the lifecycle recorder touches
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace as dc_replace
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass
class SEEAttributes:
    """
    COCOMO-style cost driver multipliers. 1.0 is nominal for all six.

    acap, pcap and tool are inverted: a higher value means a weaker team
    or poorer tooling, so the multiplier itself still grows with effort.
    """

    rely: float = 1.0
    cplx: float = 1.0
    acap: float = 1.0
    pcap: float = 1.0
    tool: float = 1.0
    sced: float = 1.0

    def __post_init__(self) -> None:
        for f in fields(self):
            setattr(self, f.name, float(getattr(self, f.name)))

    @classmethod
    def nominal(cls) -> "SEEAttributes":
        return cls()

    def replace(self, name: str, value: float) -> "SEEAttributes":
        """Return a copy with a single attribute changed."""
        return dc_replace(self, **{name: value})

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class ChinaAttributes:
    """
    Function-point model inputs: counts and project metrics.

    No numeric ranges are enforced here; CHINA_DESCRIPTORS is guidance only.
    """

    afp: float
    input: float
    output: float
    enquiry: float
    file: float
    interface: float
    resource: float
    duration: float

    def __post_init__(self) -> None:
        for f in fields(self):
            setattr(self, f.name, float(getattr(self, f.name)))

    @classmethod
    def defaults(cls) -> "ChinaAttributes":
        return cls(**{name: d.nominal for name, d in CHINA_DESCRIPTORS.items()})

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class FeatureImportance:
    feature: str
    importance: float

    def as_dict(self) -> Dict[str, float]:
        return {"feature": self.feature, "importance": self.importance}


@dataclass(frozen=True)
class AttributeDescriptor:
    name: str
    label: str
    description: str
    min: float
    max: float
    nominal: float
    inverted: bool = False
    step: Optional[float] = None


SEE_DESCRIPTORS: Dict[str, AttributeDescriptor] = {
    "rely": AttributeDescriptor(
        "rely", "Reliability", "Required software reliability", 0.75, 1.40, 1.0
    ),
    "cplx": AttributeDescriptor(
        "cplx", "Complexity", "Product complexity", 0.70, 1.65, 1.0
    ),
    "acap": AttributeDescriptor(
        "acap",
        "Analyst Capability",
        "Capability of the analysis team",
        0.71,
        1.46,
        1.0,
        inverted=True,
    ),
    "pcap": AttributeDescriptor(
        "pcap",
        "Programmer Capability",
        "Capability of the programming team",
        0.70,
        1.42,
        1.0,
        inverted=True,
    ),
    "tool": AttributeDescriptor(
        "tool",
        "Tool Support",
        "Use of software development tools",
        0.83,
        1.24,
        1.0,
        inverted=True,
    ),
    "sced": AttributeDescriptor(
        "sced", "Schedule Constraint", "Required development schedule", 1.00, 1.23, 1.0
    ),
}


CHINA_DESCRIPTORS: Dict[str, AttributeDescriptor] = {
    "afp": AttributeDescriptor(
        "afp",
        "Adjusted Function Points",
        "Total function points adjusted for complexity",
        50,
        1000,
        200,
        step=10,
    ),
    "input": AttributeDescriptor(
        "input", "Input Transactions", "Number of input data transactions", 0, 200, 30, step=5
    ),
    "output": AttributeDescriptor(
        "output", "Output Transactions", "Number of output data transactions", 0, 200, 40, step=5
    ),
    "enquiry": AttributeDescriptor(
        "enquiry",
        "Enquiry Transactions",
        "Number of enquiry/query transactions",
        0,
        100,
        20,
        step=5,
    ),
    "file": AttributeDescriptor(
        "file", "Internal Files", "Number of internal logical files", 0, 100, 15, step=1
    ),
    "interface": AttributeDescriptor(
        "interface",
        "External Interfaces",
        "Number of external interface files",
        0,
        50,
        10,
        step=1,
    ),
    "resource": AttributeDescriptor(
        "resource",
        "Resource Constraints",
        "Resource constraint level (1=low, 10=high)",
        1,
        10,
        5,
        step=1,
    ),
    "duration": AttributeDescriptor(
        "duration",
        "Project Duration",
        "Expected project duration in months",
        1,
        48,
        12,
        step=1,
    ),
}


@dataclass
class Swimlane:
    swimlane_id: str
    name: str
    position: int = 0
    project_id: Optional[str] = None


DEFAULT_SWIMLANES: Tuple[Tuple[str, int], ...] = (
    ("Backlog", 0),
    ("To Do", 1),
    ("In Progress", 2),
    ("Done", 3),
)


@dataclass
class Task:
    """
    A kanban task row as stored by the persistence collaborator.

    estimated_effort_pm and actual_effort_pm are snapshots: they only
    change through an explicit attribute update or a swimlane move.
    """

    task_id: str
    title: str = ""
    project_id: Optional[str] = None
    swimlane_id: Optional[str] = None
    position: int = 0
    description: Optional[str] = None

    attr_rely: float = 1.0
    attr_cplx: float = 1.0
    attr_acap: float = 1.0
    attr_pcap: float = 1.0
    attr_tool: float = 1.0
    attr_sced: float = 1.0

    estimated_effort_pm: Optional[float] = None
    actual_effort_pm: Optional[float] = None

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def see_attributes(self) -> SEEAttributes:
        return SEEAttributes(
            rely=self.attr_rely,
            cplx=self.attr_cplx,
            acap=self.attr_acap,
            pcap=self.attr_pcap,
            tool=self.attr_tool,
            sced=self.attr_sced,
        )

    def copy(self, **changes) -> "Task":
        return dc_replace(self, **changes)

    def as_dict(self) -> Dict[str, object]:
        row = asdict(self)
        for key in ("start_date", "end_date", "created_at", "updated_at"):
            value = row[key]
            row[key] = value.isoformat() if value is not None else None
        return row
