# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Table metadata for the binôme store and the collaborator tables it reads.

sections, members, age_brackets, meetings and meeting_attendance belong to
the surrounding system and are only read here. binome_cycles and
binome_pairs are owned by this service.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    true,
)

metadata = MetaData()

sections = Table(
    "sections",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
)

members = Table(
    "members",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("section_id", String(36), ForeignKey("sections.id"), nullable=False, index=True),
    Column("first_name", String(255), nullable=False, default=""),
    Column("last_name", String(255), nullable=False, default=""),
    Column("birth_date", Date, nullable=True),
    Column("age_bracket_override", String(16), nullable=True),
    Column("gender", String(64), nullable=True),
)

age_brackets = Table(
    "age_brackets",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(64), nullable=False, unique=True),
    Column("age_min", Integer, nullable=False),
    Column("age_max", Integer, nullable=True),
    Column("sort_order", Integer, nullable=False, default=0),
)

meetings = Table(
    "meetings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("section_id", String(36), ForeignKey("sections.id"), nullable=False, index=True),
    Column("held_at", DateTime(timezone=True), nullable=False),
)

meeting_attendance = Table(
    "meeting_attendance",
    metadata,
    Column("meeting_id", String(36), ForeignKey("meetings.id"), primary_key=True),
    Column("member_id", String(36), primary_key=True),
)

binome_cycles = Table(
    "binome_cycles",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("section_id", String(36), ForeignKey("sections.id"), nullable=False),
    Column("started_at", DateTime(timezone=True), nullable=False),
    Column("ended_at", DateTime(timezone=True), nullable=True),
    Column("is_active", Boolean, nullable=False, default=True),
    Index("ix_binome_cycles_section_started", "section_id", "started_at"),
)

# One active cycle per section, whatever the writer.
Index(
    "uq_binome_cycles_active_section",
    binome_cycles.c.section_id,
    unique=True,
    postgresql_where=binome_cycles.c.is_active == true(),
    sqlite_where=binome_cycles.c.is_active == true(),
)

binome_pairs = Table(
    "binome_pairs",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("cycle_id", String(36), ForeignKey("binome_cycles.id"), nullable=False, index=True),
    Column("age_bracket_id", String(36), ForeignKey("age_brackets.id"), nullable=False),
    # Upper-cased key, can be longer than members.gender.
    Column("gender", Text, nullable=False),
    Column("member_a_id", String(36), ForeignKey("members.id"), nullable=False),
    Column("member_b_id", String(36), ForeignKey("members.id"), nullable=False),
    Column("position", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False),
)
