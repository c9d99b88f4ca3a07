"""Injury and disease lifecycle, treatment, outbreaks and deaths for every settler."""

from __future__ import annotations

import math
from typing import Optional, Union

from redrock_sim.core.config import (
    AMPUTATION_CONSIDER_CHANCE,
    AMPUTATION_WINDOW_DAYS,
    BASE_SANITATION,
    BEDREST_ENERGY_CAP,
    BEDREST_THRESHOLD,
    DAILY_INFECTION_FACTOR,
    DEATH_CHRONICLE_SEVERITY,
    DEATH_MORALE_HIT,
    DOCTOR_MIN_HEALTH,
    GANGRENE_CHANCE,
    GANGRENE_THRESHOLD,
    HEAVY_RAIN_SANITATION_PENALTY,
    HOSPITAL_MIN_CONDITION,
    IMMEDIATE_INFECTION_FACTOR,
    INJURY_HEALTH_FACTOR,
    INJURY_MOOD_FACTOR,
    LARGE_POPULATION,
    LARGE_POPULATION_SPREAD,
    NURSE_MIN_HEALTH,
    OUTBREAK_CHRONICLE_SEVERITY,
    OUTBREAK_END_FRACTION,
    OUTBREAK_MIN_CASES,
    OUTBREAK_MORALE_HIT,
    OUTBREAK_POPULATION_DIVISOR,
    PAIN_DECAY_RATE,
    QUARANTINE_EFFECTIVENESS,
    QUARANTINE_FOOD_COST,
    QUARANTINE_MORALE_HIT,
    SANITATION_BUILDING_BONUS,
    SANITATION_POPULATION_PENALTY,
    SANITATION_RANGE,
    SEPSIS_THRESHOLD,
    SICK_RATIO_FACILITY_ALERT,
    TETANUS_CHANCE,
    TETANUS_THRESHOLD,
    TRANSMISSION_FACTOR,
    TREATED_BLEEDING_DECAY,
    TREATED_HEAL_RATE,
    TREATED_INFECTION_DECAY,
    UNTREATED_HEAL_RATE,
)
from redrock_sim.core.clock import format_date
from redrock_sim.core.keys import UnknownKeyError, lookup
from redrock_sim.core.rng import RandomSource
from redrock_sim.medical.conditions import (
    ACCIDENT_INJURY_WEIGHTS,
    BODY_PART_WEIGHTS,
    BODY_PARTS,
    DISEASES,
    INJURY_TYPES,
    TREATMENTS,
    VITAL_PARTS,
    BodyPart,
    Disease,
    DiseaseName,
    DiseaseOutbreak,
    Injury,
    InjuryType,
    TreatmentTier,
)


def outbreak_threshold(population: int) -> int:
    """Symptomatic cases needed to declare an outbreak: 10% of population, at least 3."""
    return max(OUTBREAK_MIN_CASES, -(-population // OUTBREAK_POPULATION_DIVISOR))


class MedicalEngine:
    """Owns the medical rules. Mutates the shared GameState in place."""

    def __init__(
        self,
        state: "GameState",  # noqa: F821
        rng: RandomSource,
        logger: Optional["SimLogger"] = None,  # noqa: F821
    ) -> None:
        self.state = state
        self._rng = rng
        self._logger = logger
        self.outbreaks: list[DiseaseOutbreak] = []
        self.deaths: int = 0
        self._next_id: int = 0

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}_{self._next_id}"

    # ------------------------------------------------------------------
    # Injuries
    # ------------------------------------------------------------------

    def add_injury(
        self,
        character: "Character",  # noqa: F821
        injury_type: Union[InjuryType, str],
        body_part: Union[BodyPart, str],
        severity: float,
        cause: str,
    ) -> Injury:
        """Wound a settler. Raises UnknownKeyError for an unknown type or body part."""
        kind = lookup(InjuryType, injury_type)
        part = lookup(BodyPart, body_part)
        info = INJURY_TYPES[kind]
        injury = Injury(
            id=self._new_id("injury"),
            injury_type=kind,
            body_part=part,
            severity=severity,
            cause=cause,
            date_occurred=self.state.date,
            bleeding=info.bleeding_rate * severity,
            pain=info.pain_level * severity,
        )
        if self._rng.chance(info.infection_chance * severity * IMMEDIATE_INFECTION_FACTOR):
            injury.is_infected = True
            injury.infection_severity = self._rng.float(0.1, 0.3)

        character.injuries.append(injury)
        character.health -= severity * BODY_PARTS[part].critical_chance * INJURY_HEALTH_FACTOR
        character.mood -= injury.pain * INJURY_MOOD_FACTOR
        character.medical_history.append({
            "date": self.state.date.isoformat(),
            "event": f"{kind.value} injury to {part.value}",
            "cause": cause,
            "severity": round(severity, 3),
        })
        self._log(character, f"{character.name} suffered a {kind.value} to the {part.value.replace('_', ' ')} ({cause})")
        return injury

    def generate_random_injury(self, character, cause: str = "accident") -> Injury:
        """Roll an injury from the cause's table. Unknown causes use the generic accident table."""
        weights = ACCIDENT_INJURY_WEIGHTS.get(cause, ACCIDENT_INJURY_WEIGHTS["accident"])
        return self.add_injury(
            character,
            self._rng.weighted_choice(weights),
            self._rng.weighted_choice(BODY_PART_WEIGHTS),
            self._rng.float(0.5, 1.5),
            cause,
        )

    def _update_injuries(self, character) -> None:
        for injury in character.active_injuries:
            injury.days_old += 1

            if injury.bleeding > 0:
                character.health -= injury.bleeding * injury.severity
                if injury.is_treated:
                    injury.bleeding = max(0.0, injury.bleeding - TREATED_BLEEDING_DECAY)

            if injury.is_infected:
                self._progress_infection(character, injury)
            elif not injury.is_treated and self._rng.chance(injury.info.infection_chance * DAILY_INFECTION_FACTOR):
                injury.is_infected = True
                injury.infection_severity = 0.1
                self._log(character, f"{character.name}'s {injury.injury_type.value} has become infected")

            if not injury.is_infected or injury.is_treated:
                rate = TREATED_HEAL_RATE if injury.is_treated else UNTREATED_HEAL_RATE
                injury.healing_progress = min(1.0, round(injury.healing_progress + rate, 6))
                injury.pain = max(0.0, injury.pain - PAIN_DECAY_RATE)

            if injury.healing_progress >= 1.0 and not injury.is_infected:
                injury.removed = True
                self._log(character, f"{character.name}'s {injury.injury_type.value} has healed")

    def _progress_infection(self, character, injury: Injury) -> None:
        if injury.is_treated:
            injury.infection_severity -= TREATED_INFECTION_DECAY
            if injury.infection_severity <= 0:
                injury.is_infected = False
                injury.infection_severity = 0.0
                self._log(character, f"The infection in {character.name}'s wound has cleared")
                return
        else:
            injury.infection_severity += self._rng.float(0.05, 0.15)

        if injury.infection_severity > SEPSIS_THRESHOLD:
            character.health -= 2
            character.mood -= 5
            if injury.infection_severity > GANGRENE_THRESHOLD and self._rng.chance(GANGRENE_CHANCE):
                self._add_complication(character, DiseaseName.GANGRENE, "infected wound")

        if (
            injury.injury_type == InjuryType.PUNCTURE
            and injury.infection_severity > TETANUS_THRESHOLD
            and self._rng.chance(TETANUS_CHANCE)
        ):
            self._add_complication(character, DiseaseName.TETANUS, "infected puncture wound")

    def _add_complication(self, character, name: DiseaseName, source: str) -> None:
        if any(d.name == name for d in character.active_diseases):
            return
        self.add_disease(character, name, source)

    # ------------------------------------------------------------------
    # Diseases
    # ------------------------------------------------------------------

    def add_disease(self, character, name: Union[DiseaseName, str], source: str = "unknown") -> Optional[Disease]:
        """Expose a settler. Returns None for an unknown disease name."""
        try:
            disease_name = lookup(DiseaseName, name)
        except UnknownKeyError:
            return None
        info = DISEASES[disease_name]
        disease = Disease(
            id=self._new_id("disease"),
            name=disease_name,
            exposure_source=source,
            date_exposed=self.state.date,
            incubation_days_left=info.incubation,
            duration_days_left=info.duration,
            severity=self._rng.float(0.5, 1.5),
            mortality=info.mortality,
            transmission=info.transmission,
        )
        character.diseases.append(disease)
        character.medical_history.append({
            "date": self.state.date.isoformat(),
            "event": f"Exposed to {disease_name.value}",
            "source": source,
            "severity": round(disease.severity, 3),
        })
        self._log(character, f"{character.name} was exposed to {disease_name.value} ({source})")
        return disease

    def _update_diseases(self, character) -> None:
        for disease in character.active_diseases:
            if disease.removed:
                continue
            if disease.incubation_days_left > 0:
                disease.incubation_days_left -= 1
                if disease.incubation_days_left == 0:
                    disease.is_symptom_present = True
                    self._log(character, f"{character.name} is showing symptoms of {disease.name.value}")

            if not disease.is_symptom_present or disease.duration_days_left <= 0:
                continue

            disease.duration_days_left -= 1
            character.health -= disease.severity * 3
            character.mood -= disease.severity * 2
            self._apply_disease_effects(character, disease)
            if not character.is_alive:
                return
            if disease.removed:
                continue

            if disease.duration_days_left == 0:
                if self._rng.chance(disease.mortality * disease.severity):
                    self.handle_character_death(character, f"died from {disease.name.value}")
                    return
                disease.removed = True
                character.immunities.add(disease.name)
                self._log(character, f"{character.name} has recovered from {disease.name.value}")
                continue

            spread = disease.info.spread_rate
            if spread > 0 and self._rng.chance(spread * TRANSMISSION_FACTOR):
                self._attempt_transmission(character, disease)

    def _apply_disease_effects(self, character, disease: Disease) -> None:
        name = disease.name
        if name == DiseaseName.CHOLERA:
            if self._rng.chance(0.3):
                character.health -= 5
                self.state.resources.take("water", 2)
        elif name == DiseaseName.TUBERCULOSIS:
            character.energy -= 10
        elif name == DiseaseName.SCURVY:
            character.energy -= 5
        elif name == DiseaseName.TETANUS:
            character.current_activity = "bedridden"
            character.energy = 0
        elif name == DiseaseName.GANGRENE:
            if disease.duration_days_left < AMPUTATION_WINDOW_DAYS and self._rng.chance(AMPUTATION_CONSIDER_CHANCE):
                self.consider_amputation(character, disease)

    def _attempt_transmission(self, carrier, disease: Disease) -> None:
        susceptible = [
            c for c in self.state.living()
            if c is not carrier
            and disease.name not in c.immunities
            and not any(d.name == disease.name for d in c.active_diseases)
        ]
        if not susceptible:
            return

        info = disease.info
        chance = info.spread_rate * TRANSMISSION_FACTOR
        if self.state.population.total > LARGE_POPULATION:
            chance *= LARGE_POPULATION_SPREAD
        chance *= 2 - self.calculate_sanitation_level()
        chance *= info.seasonal(self.state.season)
        chance *= 1 - self._quarantine_effectiveness(disease.name)

        if self._rng.chance(chance):
            victim = self._rng.choice(susceptible)
            self.add_disease(victim, disease.name, f"{disease.name.value} transmission from {carrier.name}")

    def _quarantine_effectiveness(self, name: DiseaseName) -> float:
        for outbreak in self.outbreaks:
            if outbreak.is_active and outbreak.disease == name:
                return max((m.get("effectiveness", 0.0) for m in outbreak.control_measures), default=0.0)
        return 0.0

    # ------------------------------------------------------------------
    # Amputation and death
    # ------------------------------------------------------------------

    def consider_amputation(self, character, gangrene: Disease) -> None:
        related = next((i for i in character.active_injuries if i.is_infected), None)
        if related is None:
            return
        part = related.body_part
        if part in VITAL_PARTS:
            self.handle_character_death(character, "gangrene in vital area")
            return

        success = 0.3
        if self.has_qualified_doctor():
            success += 0.3
        if self.has_hospital_facility():
            success += 0.2
        if self.state.resources.get("medicine") > 5:
            success += 0.1

        if not self._rng.chance(success):
            self.handle_character_death(character, "failed amputation")
            return

        label = part.value.replace("_", " ")
        character.amputations.append({
            "bodyPart": part.value,
            "date": self.state.date.isoformat(),
            "cause": "gangrene amputation",
        })
        character.permanent_disabilities.append(f"missing {label}")
        gangrene.removed = True
        for injury in character.active_injuries:
            if injury.body_part == part:
                injury.removed = True
        character.health = max(30.0, character.health - 20)
        self._log(character, f"{character.name} survived the amputation of their {label}")
        self.state.add_chronicle(
            f"{character.name} lost their {label} to gangrene but survived",
            "medical",
            participants=[character.name],
            severity=6,
        )

    def handle_character_death(self, character, cause: str) -> bool:
        """Record a death once. Returns False if the settler was already dead."""
        if not character.is_alive:
            return False
        character.is_alive = False
        character.cause_of_death = cause
        character.date_of_death = self.state.date
        character.personal_history.append(f"Died on {format_date(self.state.date)}: {cause}")
        self.deaths += 1

        self.state.population.remove(character)
        self.state.morale.adjust(-DEATH_MORALE_HIT)
        self.state.morale.add_recent(f"Death of {character.name}")

        for outbreak in self.outbreaks:
            if outbreak.is_active and cause == f"died from {outbreak.disease.value}":
                outbreak.deaths += 1

        self._log(character, f"{character.name} has died ({cause})")
        self.state.add_chronicle(
            f"{character.name} passed away: {cause}",
            "death",
            participants=[character.name],
            severity=DEATH_CHRONICLE_SEVERITY,
            cause=cause,
        )
        if self._logger:
            self._logger.log("LIFECYCLE", f"{character.name} died: {cause}", character_ids=[character.id])
        return True

    # ------------------------------------------------------------------
    # Daily update
    # ------------------------------------------------------------------

    def update_medical_conditions(self) -> None:
        """One day of medical progression for every living settler, then outbreaks and facilities."""
        for character in self.state.living():
            self._update_injuries(character)
            if character.is_alive:
                self._update_diseases(character)
            if character.is_alive and character.health <= 0:
                self.handle_character_death(character, "health_failure")
            character.compact_conditions()
            if character.is_alive:
                self._update_overall_health(character)
                self._provide_automatic_care(character)

        self.check_disease_outbreaks()
        self._update_medical_facilities()

    def _update_overall_health(self, character) -> None:
        work = mobility = pain = 0.0
        for injury in character.active_injuries:
            part = injury.part
            work += part.work_penalty * injury.severity
            mobility += part.mobility_penalty * injury.severity
            pain += injury.pain
            if injury.is_infected:
                work += injury.infection_severity * 0.5
                mobility += injury.infection_severity * 0.3
                pain += injury.infection_severity * 0.5
        for disease in character.active_diseases:
            if disease.is_symptom_present:
                work += disease.severity * 0.3
                mobility += disease.severity * 0.2
                pain += disease.severity * 0.4

        status = character.medical_status
        status.work_efficiency = max(0.1, 1 - work)
        status.mobility_efficiency = max(0.1, 1 - mobility)
        status.pain_level = min(1.0, pain)
        status.requires_bedrest = pain > BEDREST_THRESHOLD or work > BEDREST_THRESHOLD
        status.needs_medical_attention = (
            any(i.is_infected for i in character.active_injuries)
            or any(d.is_symptom_present for d in character.active_diseases)
        )
        if status.requires_bedrest:
            character.current_activity = "bedridden"
            character.energy = min(float(BEDREST_ENERGY_CAP), character.energy)

    def _provide_automatic_care(self, character) -> None:
        if not character.medical_status.needs_medical_attention:
            return
        for injury in character.active_injuries:
            if (injury.is_infected or injury.bleeding > 0.1) and not injury.is_treated:
                for tier in (TreatmentTier.DOCTOR_TREATMENT, TreatmentTier.BASIC_MEDICAL_CARE, TreatmentTier.FOLK_REMEDY):
                    if self.can_provide_treatment(tier):
                        self.provide_medical_treatment(character, injury.id, tier)
                        break
        for disease in character.active_diseases:
            if not disease.is_symptom_present or disease.is_treated:
                continue
            if disease.severity > 0.8:
                tiers = (TreatmentTier.HOSPITAL_CARE, TreatmentTier.DOCTOR_TREATMENT,
                         TreatmentTier.BASIC_MEDICAL_CARE, TreatmentTier.FOLK_REMEDY)
            elif disease.severity > 0.5:
                tiers = (TreatmentTier.DOCTOR_TREATMENT, TreatmentTier.BASIC_MEDICAL_CARE, TreatmentTier.FOLK_REMEDY)
            else:
                tiers = (TreatmentTier.BASIC_MEDICAL_CARE, TreatmentTier.FOLK_REMEDY)
            for tier in tiers:
                if self.can_provide_treatment(tier):
                    self.provide_medical_treatment(character, disease.id, tier)
                    break

    def _update_medical_facilities(self) -> None:
        sick = sum(1 for c in self.state.living() if c.medical_status.needs_medical_attention)
        total = self.state.population.total
        if total and sick / total > SICK_RATIO_FACILITY_ALERT and not self.has_hospital_facility():
            self.state.morale.add_recent("Settlement needs medical facility")
        self.state.resources.take("medicine", sick // 3)

    # ------------------------------------------------------------------
    # Treatment
    # ------------------------------------------------------------------

    def treatment_effectiveness(self, tier: TreatmentTier) -> float:
        knowledge = max(0, self.state.medical_knowledge)
        return min(1.0, TREATMENTS[tier].effectiveness + knowledge / 100)

    def can_provide_treatment(self, tier: Union[TreatmentTier, str]) -> bool:
        try:
            tier = lookup(TreatmentTier, tier)
        except UnknownKeyError:
            return False
        info = TREATMENTS[tier]
        if self.state.resources.get("money") < info.cost:
            return False
        checks = {
            "medical_supplies": lambda: self.state.resources.get("medicine") > 0,
            "qualified_doctor": self.has_qualified_doctor,
            "hospital_facility": self.has_hospital_facility,
            "nurses": self.has_nurses,
        }
        return all(checks[req]() for req in info.requirements)

    def provide_medical_treatment(self, character, condition_id: str, tier: Union[TreatmentTier, str]) -> bool:
        """Treat one injury or disease. False, with no state change, when treatment is impossible."""
        try:
            tier = lookup(TreatmentTier, tier)
        except UnknownKeyError:
            return False
        injury = next((i for i in character.active_injuries if i.id == condition_id), None)
        disease = next((d for d in character.active_diseases if d.id == condition_id), None)
        condition = injury or disease
        if condition is None or condition.is_treated or not self.can_provide_treatment(tier):
            return False

        eff = self.treatment_effectiveness(tier)
        info = TREATMENTS[tier]
        condition.is_treated = True
        if injury is not None:
            injury.bleeding *= 1 - eff
            injury.pain *= 1 - eff
            if injury.is_infected:
                injury.infection_severity *= 1 - eff
            label = f"{injury.injury_type.value} ({injury.body_part.value})"
        else:
            disease.duration_days_left = max(1, math.floor(disease.duration_days_left * (1 - eff * 0.3)))
            disease.severity = max(0.1, disease.severity * (1 - eff * 0.2))
            label = disease.name.value

        self.state.resources.take("money", info.cost)
        if "medical_supplies" in info.requirements:
            self.state.resources.take("medicine", 1)
        character.treatment_history.append({
            "date": self.state.date.isoformat(),
            "condition": label,
            "treatment": tier.value,
            "effectiveness": round(eff, 3),
            "cost": info.cost,
        })
        self._log(character, f"{character.name} received {tier.value.replace('_', ' ')} for {label}")
        return True

    def treat_most_severe(self, character, tier: Union[TreatmentTier, str]) -> bool:
        """Treat the settler's worst untreated condition."""
        candidates = [(d.severity, d.id) for d in character.active_diseases if not d.is_treated]
        candidates += [(i.severity, i.id) for i in character.active_injuries if not i.is_treated]
        if not candidates:
            return False
        _, condition_id = max(candidates, key=lambda c: c[0])
        return self.provide_medical_treatment(character, condition_id, tier)

    # ------------------------------------------------------------------
    # Staffing and facilities
    # ------------------------------------------------------------------

    def has_qualified_doctor(self) -> bool:
        return any(c.background == "Doctor" and c.health > DOCTOR_MIN_HEALTH for c in self.state.living())

    def has_hospital_facility(self) -> bool:
        return self.state.infrastructure.has_type("hospital", min_condition=HOSPITAL_MIN_CONDITION)

    def has_nurses(self) -> bool:
        return any(
            c.background in ("Doctor", "Teacher") and c.health > NURSE_MIN_HEALTH
            for c in self.state.living()
        )

    def calculate_sanitation_level(self) -> float:
        level = BASE_SANITATION - self.state.population.total / 100 * SANITATION_POPULATION_PENALTY
        for building_type, bonus in SANITATION_BUILDING_BONUS.items():
            if self.state.infrastructure.has_type(building_type):
                level += bonus
        weather = self.state.weather
        if weather is not None and weather.precipitation == "heavy_rain":
            level -= HEAVY_RAIN_SANITATION_PENALTY
        lo, hi = SANITATION_RANGE
        return max(lo, min(hi, level))

    # ------------------------------------------------------------------
    # Outbreaks
    # ------------------------------------------------------------------

    def active_outbreaks(self) -> list[DiseaseOutbreak]:
        return [o for o in self.outbreaks if o.is_active]

    def check_disease_outbreaks(self) -> None:
        cases: dict[DiseaseName, list[str]] = {}
        for character in self.state.living():
            for disease in character.active_diseases:
                if disease.is_symptom_present:
                    cases.setdefault(disease.name, []).append(character.id)

        threshold = outbreak_threshold(self.state.population.total)
        for name, ids in cases.items():
            if len(ids) >= threshold and not any(o.is_active and o.disease == name for o in self.outbreaks):
                self._declare_outbreak(name, ids)

        for outbreak in self.active_outbreaks():
            ids = cases.get(outbreak.disease, [])
            outbreak.current_infected = len(ids)
            outbreak.case_ids.update(ids)
            outbreak.total_infected = len(outbreak.case_ids)
            outbreak.peak_infected = max(outbreak.peak_infected, len(ids))
            outbreak.duration += 1
            if outbreak.current_infected < max(1, outbreak.peak_infected * OUTBREAK_END_FRACTION):
                outbreak.is_active = False
                outbreak.end_date = self.state.date
                self._log(None, f"{outbreak.disease.value} outbreak has ended after {outbreak.duration} days")

    def _declare_outbreak(self, name: DiseaseName, case_ids: list[str]) -> DiseaseOutbreak:
        count = len(case_ids)
        outbreak = DiseaseOutbreak(
            id=self._new_id("outbreak"),
            disease=name,
            start_date=self.state.date,
            initial_infected=count,
            current_infected=count,
            total_infected=count,
            peak_infected=count,
            case_ids=set(case_ids),
        )
        self.outbreaks.append(outbreak)
        self.state.morale.adjust(-OUTBREAK_MORALE_HIT)
        self.state.morale.add_recent(f"{name.value} outbreak")
        self._log(None, f"OUTBREAK: {name.value} is spreading through the settlement ({count} cases)")
        self.state.add_chronicle(
            f"A {name.value} outbreak struck the settlement, with {count} settlers falling ill",
            "outbreak",
            severity=OUTBREAK_CHRONICLE_SEVERITY,
            disease=name.value,
            cases=count,
        )
        if self.has_qualified_doctor():
            self._implement_quarantine(outbreak)
        return outbreak

    def _implement_quarantine(self, outbreak: DiseaseOutbreak) -> None:
        outbreak.control_measures.append({
            "type": "quarantine",
            "startDate": self.state.date.isoformat(),
            "effectiveness": QUARANTINE_EFFECTIVENESS,
        })
        self.state.morale.adjust(-QUARANTINE_MORALE_HIT)
        self.state.resources.take("food", QUARANTINE_FOOD_COST)
        self._log(None, f"Quarantine measures implemented for the {outbreak.disease.value} outbreak")

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def get_medical_status_report(self) -> dict:
        living = self.state.living()
        total = len(living)
        healthy = sum(
            1 for c in living
            if c.health > 70 and not c.active_injuries and not c.active_diseases
        )
        return {
            "totalPopulation": total,
            "healthyCount": healthy,
            "injuredCount": sum(1 for c in living if c.active_injuries),
            "sickCount": sum(1 for c in living if any(d.is_symptom_present for d in c.active_diseases)),
            "criticalCount": sum(1 for c in living if c.health < 30 or c.medical_status.requires_bedrest),
            "healthPercentage": round(healthy / total * 100) if total else 0,
            "activeOutbreaks": [o.as_dict() for o in self.active_outbreaks()],
            "medicalSupplies": self.state.resources.get("medicine"),
            "sanitationLevel": round(self.calculate_sanitation_level(), 3),
            "hasDoctor": self.has_qualified_doctor(),
            "hasHospital": self.has_hospital_facility(),
        }

    def get_character_medical_details(self, character) -> dict:
        return {
            "name": character.name,
            "health": round(character.health),
            "injuries": [i.as_dict() for i in character.active_injuries],
            "diseases": [d.as_dict() for d in character.active_diseases],
            "medicalHistory": list(character.medical_history),
            "immunities": sorted(d.value for d in character.immunities),
            "amputations": list(character.amputations),
            "permanentDisabilities": list(character.permanent_disabilities),
            "medicalStatus": character.medical_status.as_dict(),
            "treatmentNeeded": character.medical_status.needs_medical_attention,
            "workCapacity": round(character.medical_status.work_efficiency, 3),
        }

    def export_medical_data(self) -> dict:
        return {
            "outbreaks": [o.as_dict() for o in self.outbreaks],
            "medicalLog": [r.as_dict() for r in self.state.medical_log],
            "characterMedicalProfiles": [self.get_character_medical_details(c) for c in self.state.characters],
            "medicalKnowledge": self.state.medical_knowledge,
        }

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log(self, character, message: str) -> None:
        from redrock_sim.simulation.state import LogRecord

        name = character.name if character is not None else "Settlement"
        self.state.medical_log.append(LogRecord(self.state.date, name, message))
        if self._logger:
            ids = [character.id] if character is not None else None
            self._logger.log("MEDICAL", message, character_ids=ids)
