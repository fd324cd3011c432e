from typing import Optional
from pydantic import BaseModel

class ServiceProviderConfig(BaseModel):
    """
    Zahlungsempfänger (Kreditor) aller erzeugten QR-Rechnungen.
    Die Adresse wird strukturiert (Strasse, Hausnummer, PLZ, Ort) angegeben.
    """
    name: Optional[str] = "Wegpiraten GmbH"
    street: Optional[str] = "Alpenstrasse"
    house_no: Optional[str] = "2"
    zip_code: Optional[str] = "3800"
    city: Optional[str] = "Interlaken"
    country_code: Optional[str] = "CH"
    iban: Optional[str] = "CH93 0076 2011 6238 5295 7"
