from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class LabResultStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CRITICAL = "CRITICAL"

class BillingStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"

class Drug(Base):
    __tablename__ = "drugs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    generic_name = Column(String(200), nullable=True)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    manufacturer = Column(String(200), nullable=True)
    unit_price = Column(Float, nullable=False, default=0.0)
    stock_quantity = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<Drug(id={self.id}, name='{self.name}', stock={self.stock_quantity})>"

class LabTest(Base):
    __tablename__ = "lab_tests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<LabTest(id={self.id}, name='{self.name}')>"

class LabResult(Base):
    __tablename__ = "lab_results"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    test_id = Column(Integer, ForeignKey("lab_tests.id"), nullable=False)
    status = Column(SQLEnum(LabResultStatus), nullable=False, default=LabResultStatus.PENDING)
    result = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    patient = relationship("Patient")
    test = relationship("LabTest")

    def __repr__(self):
        return f"<LabResult(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"

class InventoryItem(Base):
    """Non-drug supplies such as gloves and syringes."""
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    category = Column(String(100), nullable=True)
    supplier = Column(String(200), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0.0)
    reorder_level = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, name='{self.name}', quantity={self.quantity})>"

class BillingRecord(Base):
    __tablename__ = "billing_records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    description = Column(String(255), nullable=True)
    total_amount = Column(Float, nullable=False, default=0.0)
    paid_amount = Column(Float, nullable=False, default=0.0)
    status = Column(SQLEnum(BillingStatus), nullable=False, default=BillingStatus.PENDING)
    created_at = Column(DateTime, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<BillingRecord(id={self.id}, patient_id={self.patient_id}, paid={self.paid_amount})>"
