import re
from decimal import Decimal
from typing import Iterable, Optional

from loguru import logger

from pydantic_models.data.address import Address
from pydantic_models.data.alternative_scheme import AlternativeScheme
from pydantic_models.data.bill import Bill
from pydantic_models.data.bill_format import BillFormat
from shared_modules.checksum import create_iso11649_reference, create_qr_reference
from shared_modules.config import Config
from shared_modules.errors import InvalidCharactersError
from shared_modules.iban import is_qr_iban, normalize_iban


class BillFactory:
    """
    Factory-Klasse zur Erstellung von QR-Rechnungen.
    Zahlungsempfänger, Konto, Währung und Darstellung stammen aus der zentralen Konfiguration.
    """

    def __init__(self, config: Config):
        self.config = config
        provider = self.config.service_provider
        # Zahlungsempfänger als strukturierte Adresse
        self.creditor = Address.structured(
            name=provider.name,
            street=provider.street,
            house_no=provider.house_no,
            postal_code=provider.zip_code,
            town=provider.city,
            country_code=provider.country_code,
        )
        self.account = normalize_iban(provider.iban)
        formatting = self.config.formatting
        self.currency = formatting.currency
        self.bill_format = BillFormat(
            language=formatting.language,
            output_size=formatting.output_size,
            graphics_format=formatting.graphics_format,
            separator_type=formatting.separator_type,
        )

    def create_reference(self, seed: str) -> str:
        """
        Erstellt eine Referenz passend zum Konto des Zahlungsempfängers.
        Args:
            seed (str): Ausgangswert, z.B. die Rechnungsnummer.
        Returns:
            str: QR-Referenz (bei einer QR-IBAN, aus den letzten 26 Ziffern von seed)
                 oder Creditor Reference nach ISO 11649.
        """
        if is_qr_iban(self.account):
            digits = re.sub(r"[^0-9]", "", seed or "")
            if not digits:
                raise InvalidCharactersError(
                    f"Für eine QR-Referenz werden Ziffern benötigt: '{seed}'"
                )
            return create_qr_reference(digits[-26:])
        return create_iso11649_reference(seed)

    def create_bill(
        self,
        amount: Optional[Decimal] = None,
        debtor: Optional[Address] = None,
        reference_seed: Optional[str] = None,
        unstructured_message: Optional[str] = None,
        bill_information: Optional[str] = None,
        alternative_schemes: Iterable[AlternativeScheme] = (),
    ) -> Bill:
        """
        Setzt eine Rechnung aus den Vorgaben der Konfiguration und den Rechnungsdaten zusammen.
        Die Rechnung wird hier nicht geprüft.
        """
        reference = self.create_reference(reference_seed) if reference_seed else None
        bill = Bill(
            amount=amount,
            currency=self.currency,
            account=self.account,
            creditor=self.creditor,
            reference=reference,
            debtor=debtor,
            unstructured_message=unstructured_message,
            bill_information=bill_information,
            alternative_schemes=tuple(alternative_schemes),
            format=self.bill_format,
        )
        logger.debug(f"Rechnung erstellt: Betrag={amount}, Referenz={reference}")
        return bill


if __name__ == "__main__":
    print("BillFactory Modul. Nicht direkt ausführbar.")
