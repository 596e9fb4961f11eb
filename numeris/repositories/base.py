from abc import ABC, abstractmethod

from numeris.models.invoice import Invoice


class InvoiceRepository(ABC):
    @abstractmethod
    def create(self, invoice: Invoice) -> Invoice: ...

    @abstractmethod
    def get_by_number(self, invoice_number: int) -> Invoice | None: ...
