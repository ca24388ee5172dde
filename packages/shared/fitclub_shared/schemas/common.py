from enum import Enum

class Role(str, Enum):
    MEMBER = "MEMBER"
    COACH = "COACH"
    MANAGER = "MANAGER"
    MANAGER_COACH = "MANAGER_COACH"
    ADMIN = "ADMIN"

class ChannelType(str, Enum):
    CLUB = "CLUB"
    COACH = "COACH"
    GROUP = "GROUP"
    PRIVATE = "PRIVATE"

class MessageReactionType(str, Enum):
    CHECK = "CHECK"
    GRRR = "GRRR"
    LIKE = "LIKE"
    LOL = "LOL"
    LOVE = "LOVE"
    SAD = "SAD"
    WOAH = "WOAH"
    STRENGTH = "STRENGTH"
    FIST = "FIST"

class DocumentType(str, Enum):
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"
    CERTIFICATION = "CERTIFICATION"

class Feature(str, Enum):
    COACH_OFFER = "COACH_OFFER"
    COACH_OFFER_COMPANY = "COACH_OFFER_COMPANY"
    COACH_CERTIFICATION = "COACH_CERTIFICATION"
    COACH_MEETING = "COACH_MEETING"
    COACH_MARKET_PLACE = "COACH_MARKET_PLACE"
    COACH_PLAN = "COACH_PLAN"
    MANAGER_MULTI_CLUB = "MANAGER_MULTI_CLUB"
    MANAGER_MULTI_SITE = "MANAGER_MULTI_SITE"
    MANAGER_ROOM = "MANAGER_ROOM"
    MANAGER_EVENT = "MANAGER_EVENT"
    MANAGER_PLANNING = "MANAGER_PLANNING"
    MANAGER_COACH = "MANAGER_COACH"
    MANAGER_MARKETING = "MANAGER_MARKETING"
    MANAGER_SHOP = "MANAGER_SHOP"
    MANAGER_EMPLOYEES = "MANAGER_EMPLOYEES"
