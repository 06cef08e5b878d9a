"""
Read-only mappings of the reporting tables that hold billed hours.

Column names follow the warehouse; attribute names are ours. The schema
(PowerBIData in production) is applied per engine, so the same mappings
work against a schemaless SQLite database in tests.
"""
from typing import Optional
from sqlalchemy import BigInteger, Column, Float, Integer, String
from sqlmodel import Field, SQLModel


class TimeEntry(SQLModel, table=True):
    """One revision of a time entry. A new batch row supersedes older ones for the same DW_ID."""
    __tablename__ = "vPowerBiData_Harvest_Harvest_data_All"
    __table_args__ = {"extend_existing": True}

    entry_id: int = Field(sa_column=Column("DW_ID", BigInteger, primary_key=True, autoincrement=False))
    batch_created: int = Field(
        sa_column=Column("DW_Batch_Created", BigInteger, primary_key=True, autoincrement=False)
    )
    employee_key: Optional[int] = Field(default=None, sa_column=Column("EmployeeKey", Integer, index=True))
    hours: float = Field(default=0.0, sa_column=Column("Hours", Float, nullable=False))
    is_billable: int = Field(default=0, sa_column=Column("IsBillableKey", Integer, nullable=False))
    entry_date: str = Field(sa_column=Column("Date", String(10), nullable=False))  # YYYYMMDD


class Employee(SQLModel, table=True):
    __tablename__ = "DimEmployee_Tabular_Flat"
    __table_args__ = {"extend_existing": True}

    employee_key: int = Field(sa_column=Column("EmployeeKey", Integer, primary_key=True, autoincrement=False))
    employee_name: str = Field(sa_column=Column("EmployeeName", String(255), nullable=False))  # 'THN - Thomas Nissen'
    team_id: Optional[str] = Field(default=None, sa_column=Column("EmployeeID_EmployeeNiv1", String(50)))
