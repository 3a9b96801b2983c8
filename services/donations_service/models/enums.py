"""Enum definitions for donations."""

import enum


class DonationPurpose(str, enum.Enum):
    """Funds the website offers. Stored as free text, so other purposes are accepted."""

    ORPHAN_RESPONSIBILITY = "orphan_responsibility"
    DEPRIVED_STUDENTS = "deprived_students"
    WIDOW_RESPONSIBILITY = "widow_responsibility"
    REHABILITATION_POOR_FAMILY = "rehabilitation_poor_family"
    TUBE_WELL_INSTALL = "tube_well_install"
    WUDU_PLACE_INSTALL = "wudu_place_install"
    DOWRY_RESPONSIBILITY = "dowry_responsibility"
    SKILL_DEVELOPMENT = "skill_development"
    WINTER_CLOTHES = "winter_clothes"
    MOSQUE_CONSTRUCTION = "mosque_construction"
    ORPHANAGE_CONSTRUCTION = "orphanage_construction"
    ZAKAT_FUND = "zakat_fund"
    GENERAL_FUND = "general_fund"
    IFTAR_PROGRAM = "iftar_program"
    QURBANI_PROGRAM = "qurbani_program"
    EMERGENCY_RELIEF = "emergency_relief"
    SHELTERLESS_HOUSING = "shelterless_housing"
