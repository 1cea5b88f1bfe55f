"""Join tables linking invoices and reports to users and organizations."""

from sqlmodel import Field, SQLModel

from .base import fk_column


class UserInvoice(SQLModel, table=True):
    __tablename__ = "UserInvoice"

    user_id: str = Field(sa_column=fk_column("User.id", primary_key=True))
    invoice_id: str = Field(sa_column=fk_column("Invoice.id", primary_key=True))


class OrgInvoice(SQLModel, table=True):
    __tablename__ = "OrgInvoice"

    org_id: str = Field(sa_column=fk_column("Org.id", primary_key=True))
    invoice_id: str = Field(sa_column=fk_column("Invoice.id", primary_key=True))


class UserReport(SQLModel, table=True):
    __tablename__ = "UserReport"

    user_id: str = Field(sa_column=fk_column("User.id", primary_key=True))
    report_id: str = Field(sa_column=fk_column("Report.id", primary_key=True))


class OrgReport(SQLModel, table=True):
    __tablename__ = "OrgReport"

    org_id: str = Field(sa_column=fk_column("Org.id", primary_key=True))
    report_id: str = Field(sa_column=fk_column("Report.id", primary_key=True))
