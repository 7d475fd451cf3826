from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class ReimburseApplication(BaseModel):
    __tablename__ = 'reimburse_applications'

    app_id = Column(Integer, ForeignKey('applications.id'), unique=True, nullable=False)
    expense_type = Column(Integer, nullable=False)  # ExpenseType
    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(Text, nullable=False)
    invoice_attachment = Column(String(500), nullable=True)
    occur_date = Column(Date, nullable=True)

    # Relationships
    application = relationship("Application", back_populates="reimburse_detail")
