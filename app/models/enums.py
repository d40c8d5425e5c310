import enum


class MessageSender(str, enum.Enum):
    CUSTOMER = "customer"
    OWNER = "owner"


class CountryCode(str, enum.Enum):
    SA = "SA"
    AE = "AE"
    KW = "KW"
    EG = "EG"
    JO = "JO"


COUNTRY_DIAL_PREFIXES = {
    CountryCode.SA: "+966",
    CountryCode.AE: "+971",
    CountryCode.KW: "+965",
    CountryCode.EG: "+20",
    CountryCode.JO: "+962",
}
