"""Injuries, diseases, outbreaks, and the static medical reference tables."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class BodyPart(Enum):
    HEAD = "head"
    TORSO = "torso"
    LEFT_ARM = "left_arm"
    RIGHT_ARM = "right_arm"
    LEFT_LEG = "left_leg"
    RIGHT_LEG = "right_leg"


class InjuryType(Enum):
    CUT = "cut"
    LACERATION = "laceration"
    BRUISE = "bruise"
    FRACTURE = "fracture"
    BURN = "burn"
    PUNCTURE = "puncture"
    CRUSH = "crush"
    GUNSHOT = "gunshot"


class DiseaseName(Enum):
    CHOLERA = "cholera"
    INFLUENZA = "influenza"
    DYSENTERY = "dysentery"
    TYPHOID = "typhoid"
    TUBERCULOSIS = "tuberculosis"
    SCURVY = "scurvy"
    TETANUS = "tetanus"
    GANGRENE = "gangrene"


class TreatmentTier(Enum):
    FOLK_REMEDY = "folk_remedy"
    BASIC_MEDICAL_CARE = "basic_medical_care"
    DOCTOR_TREATMENT = "doctor_treatment"
    HOSPITAL_CARE = "hospital_care"


# =============================================================================
# Static reference tables
# =============================================================================

@dataclass(frozen=True)
class BodyPartInfo:
    critical_chance: float
    heal_time: int
    work_penalty: float
    mobility_penalty: float


@dataclass(frozen=True)
class InjuryTypeInfo:
    bleeding_rate: float
    infection_chance: float
    pain_level: float


@dataclass(frozen=True)
class DiseaseInfo:
    transmission: str
    incubation: int
    duration: int
    mortality: float
    spread_rate: float
    seasonal_modifier: dict[str, float] = field(default_factory=dict)

    def seasonal(self, season: str) -> float:
        return self.seasonal_modifier.get(season, 1.0)


@dataclass(frozen=True)
class TreatmentInfo:
    effectiveness: float
    cost: int
    requirements: tuple[str, ...] = ()


BODY_PARTS: dict[BodyPart, BodyPartInfo] = {
    BodyPart.HEAD: BodyPartInfo(0.8, 30, 0.8, 0.3),
    BodyPart.TORSO: BodyPartInfo(0.6, 20, 0.5, 0.2),
    BodyPart.LEFT_ARM: BodyPartInfo(0.1, 14, 0.3, 0.0),
    BodyPart.RIGHT_ARM: BodyPartInfo(0.1, 14, 0.4, 0.0),
    BodyPart.LEFT_LEG: BodyPartInfo(0.2, 21, 0.2, 0.4),
    BodyPart.RIGHT_LEG: BodyPartInfo(0.2, 21, 0.2, 0.4),
}

INJURY_TYPES: dict[InjuryType, InjuryTypeInfo] = {
    InjuryType.CUT: InjuryTypeInfo(0.1, 0.3, 0.3),
    InjuryType.LACERATION: InjuryTypeInfo(0.2, 0.5, 0.4),
    InjuryType.BRUISE: InjuryTypeInfo(0.0, 0.1, 0.2),
    InjuryType.FRACTURE: InjuryTypeInfo(0.05, 0.2, 0.7),
    InjuryType.BURN: InjuryTypeInfo(0.0, 0.6, 0.5),
    InjuryType.PUNCTURE: InjuryTypeInfo(0.3, 0.7, 0.4),
    InjuryType.CRUSH: InjuryTypeInfo(0.1, 0.4, 0.8),
    InjuryType.GUNSHOT: InjuryTypeInfo(0.4, 0.8, 0.9),
}

DISEASES: dict[DiseaseName, DiseaseInfo] = {
    DiseaseName.CHOLERA: DiseaseInfo("waterborne", 3, 14, 0.6, 0.3, {"summer": 1.5, "fall": 1.2}),
    DiseaseName.INFLUENZA: DiseaseInfo("airborne", 2, 10, 0.1, 0.4, {"winter": 2.0, "spring": 1.2}),
    DiseaseName.DYSENTERY: DiseaseInfo("foodborne", 4, 12, 0.3, 0.25, {"summer": 1.3}),
    DiseaseName.TYPHOID: DiseaseInfo("waterborne", 7, 21, 0.4, 0.2),
    DiseaseName.TUBERCULOSIS: DiseaseInfo("airborne", 14, 90, 0.5, 0.15),
    DiseaseName.SCURVY: DiseaseInfo("nutritional", 30, 45, 0.2, 0.0),
    DiseaseName.TETANUS: DiseaseInfo("wound_infection", 7, 21, 0.8, 0.0),
    DiseaseName.GANGRENE: DiseaseInfo("wound_infection", 3, 14, 0.7, 0.0),
}

TREATMENTS: dict[TreatmentTier, TreatmentInfo] = {
    TreatmentTier.FOLK_REMEDY: TreatmentInfo(0.3, 1),
    TreatmentTier.BASIC_MEDICAL_CARE: TreatmentInfo(0.6, 5, ("medical_supplies",)),
    TreatmentTier.DOCTOR_TREATMENT: TreatmentInfo(0.8, 15, ("qualified_doctor", "medical_supplies")),
    TreatmentTier.HOSPITAL_CARE: TreatmentInfo(
        0.9, 30, ("hospital_facility", "qualified_doctor", "medical_supplies", "nurses"),
    ),
}

# Injury tables for random accidents: cause -> {injury type: weight}
ACCIDENT_INJURY_WEIGHTS: dict[str, dict[InjuryType, float]] = {
    "mining_accident": {
        InjuryType.CRUSH: 0.3, InjuryType.CUT: 0.2, InjuryType.FRACTURE: 0.25,
        InjuryType.PUNCTURE: 0.15, InjuryType.BRUISE: 0.1,
    },
    "construction_accident": {
        InjuryType.CUT: 0.3, InjuryType.FRACTURE: 0.2, InjuryType.BRUISE: 0.25,
        InjuryType.CRUSH: 0.15, InjuryType.PUNCTURE: 0.1,
    },
    "animal_attack": {
        InjuryType.LACERATION: 0.4, InjuryType.PUNCTURE: 0.3,
        InjuryType.BRUISE: 0.2, InjuryType.FRACTURE: 0.1,
    },
    "gunfight": {InjuryType.GUNSHOT: 0.8, InjuryType.CUT: 0.1, InjuryType.BRUISE: 0.1},
    "accident": {
        InjuryType.CUT: 0.25, InjuryType.BRUISE: 0.3, InjuryType.FRACTURE: 0.15,
        InjuryType.BURN: 0.15, InjuryType.PUNCTURE: 0.15,
    },
}

BODY_PART_WEIGHTS: dict[BodyPart, float] = {
    BodyPart.HEAD: 0.1,
    BodyPart.TORSO: 0.2,
    BodyPart.LEFT_ARM: 0.2,
    BodyPart.RIGHT_ARM: 0.2,
    BodyPart.LEFT_LEG: 0.15,
    BodyPart.RIGHT_LEG: 0.15,
}

LIMBS: list[BodyPart] = [BodyPart.LEFT_ARM, BodyPart.RIGHT_ARM, BodyPart.LEFT_LEG, BodyPart.RIGHT_LEG]
VITAL_PARTS: set[BodyPart] = {BodyPart.HEAD, BodyPart.TORSO}


# =============================================================================
# Per-character condition records
# =============================================================================

@dataclass
class Injury:
    """A wound on one body part."""

    id: str
    injury_type: InjuryType
    body_part: BodyPart
    severity: float
    cause: str
    date_occurred: datetime.date
    days_old: int = 0
    is_infected: bool = False
    infection_severity: float = 0.0
    is_treated: bool = False
    bleeding: float = 0.0
    pain: float = 0.0
    healing_progress: float = 0.0
    removed: bool = False   # marked during an update, compacted afterwards

    @property
    def info(self) -> InjuryTypeInfo:
        return INJURY_TYPES[self.injury_type]

    @property
    def part(self) -> BodyPartInfo:
        return BODY_PARTS[self.body_part]

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.injury_type.value,
            "bodyPart": self.body_part.value,
            "severity": round(self.severity, 3),
            "cause": self.cause,
            "dateOccurred": self.date_occurred.isoformat(),
            "daysOld": self.days_old,
            "isInfected": self.is_infected,
            "infectionSeverity": round(self.infection_severity, 3),
            "isTreated": self.is_treated,
            "bleeding": round(self.bleeding, 3),
            "pain": round(self.pain, 3),
            "healingProgress": round(self.healing_progress, 3),
        }


@dataclass
class Disease:
    """An illness progressing through incubation and symptoms."""

    id: str
    name: DiseaseName
    exposure_source: str
    date_exposed: datetime.date
    incubation_days_left: int
    duration_days_left: int
    severity: float
    mortality: float
    transmission: str
    is_symptom_present: bool = False
    is_treated: bool = False
    removed: bool = False

    @property
    def info(self) -> DiseaseInfo:
        return DISEASES[self.name]

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name.value,
            "exposureSource": self.exposure_source,
            "dateExposed": self.date_exposed.isoformat(),
            "incubationDaysLeft": self.incubation_days_left,
            "durationDaysLeft": self.duration_days_left,
            "severity": round(self.severity, 3),
            "isSymptomPresent": self.is_symptom_present,
            "isTreated": self.is_treated,
            "mortality": self.mortality,
            "transmission": self.transmission,
        }


@dataclass
class DiseaseOutbreak:
    """A tracked epidemic episode of one disease."""

    id: str
    disease: DiseaseName
    start_date: datetime.date
    initial_infected: int
    current_infected: int
    total_infected: int
    peak_infected: int
    end_date: Optional[datetime.date] = None
    is_active: bool = True
    deaths: int = 0
    duration: int = 0
    control_measures: list[dict] = field(default_factory=list)
    case_ids: set[str] = field(default_factory=set)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "disease": self.disease.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "isActive": self.is_active,
            "initialInfected": self.initial_infected,
            "currentInfected": self.current_infected,
            "totalInfected": self.total_infected,
            "peakInfected": self.peak_infected,
            "deaths": self.deaths,
            "duration": self.duration,
            "controlMeasures": list(self.control_measures),
        }
