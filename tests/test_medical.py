"""Tests for the medical engine: injuries, diseases, treatment, outbreaks, death."""

import pytest

from conftest import build_state
from redrock_sim.core.keys import UnknownKeyError
from redrock_sim.medical.conditions import BodyPart, DiseaseName, InjuryType, TreatmentTier
from redrock_sim.medical.engine import MedicalEngine, outbreak_threshold
from redrock_sim.world.infrastructure import Building


class TestInjuries:
    """Wounds, healing and infection."""

    def test_add_injury_scales_with_severity(self, state, medical):
        """Bleeding and pain are the type's rates times severity."""
        c = state.characters[0]
        injury = medical.add_injury(c, "gunshot", "torso", 0.5, "gunfight")
        assert injury.injury_type == InjuryType.GUNSHOT
        assert injury.body_part == BodyPart.TORSO
        assert injury.bleeding == pytest.approx(0.2)
        assert injury.pain == pytest.approx(0.45)
        # torso critical 0.6 -> 0.5 * 0.6 * 20 health lost
        assert c.health == pytest.approx(94.0)
        assert c.medical_history[-1]["cause"] == "gunfight"

    def test_camel_case_keys_accepted(self, state, medical):
        """Exported camelCase body part names resolve."""
        injury = medical.add_injury(state.characters[0], "fracture", "leftLeg", 1.0, "fall")
        assert injury.body_part == BodyPart.LEFT_LEG

    def test_unknown_injury_type_raises(self, state, medical):
        """Unknown injury type is rejected."""
        with pytest.raises(UnknownKeyError):
            medical.add_injury(state.characters[0], "paper_cut", "head", 1.0, "test")

    def test_unknown_body_part_raises(self, state, medical):
        """Unknown body part is rejected."""
        with pytest.raises(UnknownKeyError):
            medical.add_injury(state.characters[0], "cut", "tail", 1.0, "test")

    def test_treated_bruise_heals_in_twenty_days(self, state, medical):
        """Treated injuries heal 0.05 per day and drop off at 1.0."""
        c = state.characters[0]
        injury = medical.add_injury(c, "bruise", "left_arm", 1.0, "fall")
        assert medical.provide_medical_treatment(c, injury.id, "folk_remedy")

        for _ in range(19):
            medical.update_medical_conditions()
        assert c.injuries == [injury]
        assert injury.healing_progress == pytest.approx(0.95)

        medical.update_medical_conditions()
        assert c.injuries == []

    def test_untreated_injury_heals_slowly(self, state, medical):
        """Untreated injuries heal 0.02 per day."""
        c = state.characters[0]
        injury = medical.add_injury(c, "bruise", "left_arm", 1.0, "fall")
        for _ in range(20):
            medical.update_medical_conditions()
        assert injury in c.injuries
        assert injury.healing_progress == pytest.approx(0.4)

    def test_random_injury_uses_cause(self, state, medical):
        """Random injuries keep their cause and a severity in [0.5, 1.5]."""
        injury = medical.generate_random_injury(state.characters[0], "mining_accident")
        assert injury.cause == "mining_accident"
        assert 0.5 <= injury.severity <= 1.5


class TestDiseases:
    """Incubation, recovery, immunity and death."""

    def test_unknown_disease_returns_none(self, state, medical):
        """Unknown disease names are ignored."""
        c = state.characters[0]
        assert medical.add_disease(c, "plague") is None
        assert c.diseases == []

    def test_incubation_then_symptoms(self, state, medical):
        """Cholera shows symptoms after three days."""
        c = state.characters[0]
        disease = medical.add_disease(c, "cholera", "test")
        medical.update_medical_conditions()
        medical.update_medical_conditions()
        assert not disease.is_symptom_present
        medical.update_medical_conditions()
        assert disease.is_symptom_present

    def test_recovery_grants_immunity(self, state, medical):
        """A survivor ends immune with the disease gone."""
        c = state.characters[0]
        medical.add_disease(c, "cholera", "test")
        for _ in range(40):
            medical.update_medical_conditions()
        assert c.is_alive
        assert DiseaseName.CHOLERA in c.immunities
        assert c.diseases == []

    def test_outcome_is_recovery_or_death(self, eager_rng):
        """Every case ends in exactly one of recovery with immunity or death."""
        state = build_state()
        medical = MedicalEngine(state, eager_rng)
        medical.add_disease(state.characters[0], "cholera", "test")
        for _ in range(60):
            medical.update_medical_conditions()

        for c in state.characters:
            assert not any(d.name == DiseaseName.CHOLERA for d in c.active_diseases) or not c.is_alive
            if c.is_alive:
                assert DiseaseName.CHOLERA in c.immunities or not c.medical_history
            else:
                assert DiseaseName.CHOLERA not in c.immunities
                assert c.cause_of_death
        assert not state.characters[0].is_alive
        assert state.characters[0].cause_of_death == "died from cholera"


class TestTreatment:
    """Treatment tiers and gating."""

    def test_no_supplies_blocks_basic_care(self, state, medical):
        """Basic care needs medicine; a refusal changes nothing."""
        c = state.characters[0]
        injury = medical.add_injury(c, "fracture", "leftLeg", 1.0, "fall")
        state.resources.set("medicine", 0)
        money = state.resources.get("money")

        assert not medical.provide_medical_treatment(c, injury.id, "basicMedicalCare")
        assert not injury.is_treated
        assert state.resources.get("medicine") == 0
        assert state.resources.get("money") == money
        assert c.treatment_history == []

    def test_folk_remedy_needs_only_money(self, state, medical):
        """Folk remedy costs 1 and needs nothing else."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        state.resources.set("medicine", 0)
        assert medical.provide_medical_treatment(c, injury.id, "folk_remedy")
        assert injury.is_treated
        assert state.resources.get("money") == 199
        assert c.treatment_history[-1]["treatment"] == "folk_remedy"

    def test_basic_care_consumes_medicine(self, state, medical):
        """Supplies-based tiers use one unit of medicine."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        assert medical.provide_medical_treatment(c, injury.id, "basic_medical_care")
        assert state.resources.get("medicine") == 19
        assert state.resources.get("money") == 195

    def test_already_treated_is_refused(self, state, medical):
        """A condition is treated at most once."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        assert medical.provide_medical_treatment(c, injury.id, "folk_remedy")
        assert not medical.provide_medical_treatment(c, injury.id, "folk_remedy")

    def test_unknown_tier_or_condition(self, state, medical):
        """Unknown tiers and condition ids are refused."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        assert not medical.provide_medical_treatment(c, injury.id, "voodoo")
        assert not medical.provide_medical_treatment(c, "injury_999", "folk_remedy")
        assert not medical.can_provide_treatment("voodoo")

    def test_disease_treatment_shortens_course(self, state, medical):
        """Treatment cuts the remaining duration and severity."""
        c = state.characters[0]
        disease = medical.add_disease(c, "influenza", "test")
        days, severity = disease.duration_days_left, disease.severity
        assert medical.provide_medical_treatment(c, disease.id, "folk_remedy")
        # effectiveness 0.3 -> duration * 0.91, severity * 0.94
        assert disease.duration_days_left == 9
        assert disease.severity == pytest.approx(severity * 0.94)
        assert days == 10

    def test_knowledge_raises_effectiveness(self, state, medical):
        """Medical knowledge adds a percent per point, capped at 1."""
        state.medical_knowledge = 20
        assert medical.treatment_effectiveness(TreatmentTier.FOLK_REMEDY) == pytest.approx(0.5)
        state.medical_knowledge = 500
        assert medical.treatment_effectiveness(TreatmentTier.HOSPITAL_CARE) == 1.0

    def test_hospital_care_gating(self, calm_rng):
        """Hospital care needs a doctor, nurses, supplies and a working hospital."""
        state = build_state(backgrounds=["Doctor", "Teacher"])
        medical = MedicalEngine(state, calm_rng)
        assert not medical.can_provide_treatment("hospital_care")

        hospital = Building("Hospital", "hospital", 20, 80)
        state.infrastructure.add(hospital)
        assert medical.can_provide_treatment("hospital_care")

        hospital.condition = 40
        assert not medical.has_hospital_facility()
        assert not medical.can_provide_treatment("hospital_care")

    def test_sick_doctor_does_not_count(self, calm_rng):
        """Doctors need health above 50 to practice."""
        state = build_state(backgrounds=["Doctor"])
        medical = MedicalEngine(state, calm_rng)
        assert medical.has_qualified_doctor()
        state.characters[0].health = 50
        assert not medical.has_qualified_doctor()
        assert medical.has_nurses()

    def test_treat_most_severe(self, state, medical):
        """The worst untreated condition is picked."""
        c = state.characters[0]
        mild = medical.add_injury(c, "bruise", "left_arm", 0.5, "fall")
        bad = medical.add_injury(c, "cut", "right_leg", 1.2, "knife")
        assert medical.treat_most_severe(c, "folk_remedy")
        assert bad.is_treated
        assert not mild.is_treated

    def test_infected_wound_ranked_by_severity(self, state, medical):
        """An infected wound ranks by its own severity, not the infection's."""
        c = state.characters[0]
        wound = medical.add_injury(c, "cut", "left_arm", 1.4, "knife")
        wound.is_infected = True
        wound.infection_severity = 0.2
        flu = medical.add_disease(c, "influenza", "traveler")
        flu.severity = 0.6

        assert medical.treat_most_severe(c, "folk_remedy")
        assert wound.is_treated
        assert not flu.is_treated


class TestOutbreaks:
    """Outbreak declaration, quarantine and termination."""

    def test_threshold(self):
        """Ten percent of population, never fewer than three."""
        assert outbreak_threshold(8) == 3
        assert outbreak_threshold(30) == 3
        assert outbreak_threshold(31) == 4
        assert outbreak_threshold(100) == 10

    def test_declared_at_threshold(self, state, medical):
        """Three symptomatic cases in eight settlers start an outbreak."""
        for c in state.characters[:3]:
            medical.add_disease(c, "cholera", "test")
        for _ in range(3):
            medical.update_medical_conditions()

        active = medical.active_outbreaks()
        assert len(active) == 1
        assert active[0].disease == DiseaseName.CHOLERA
        assert active[0].initial_infected == 3
        assert state.morale.overall == pytest.approx(40.0)
        assert state.chronicle[-1].entry_type == "outbreak"
        assert state.chronicle[-1].severity == 9

    def test_no_duplicate_outbreak(self, state, medical):
        """One active outbreak per disease."""
        for c in state.characters[:4]:
            medical.add_disease(c, "cholera", "test")
        for _ in range(5):
            medical.update_medical_conditions()
        assert len(medical.outbreaks) == 1
        assert medical.outbreaks[0].peak_infected == 4

    def test_quarantine_with_doctor(self, calm_rng):
        """A healthy doctor quarantines a new outbreak."""
        state = build_state(backgrounds=["Farmer", "Farmer", "Farmer", "Doctor"])
        medical = MedicalEngine(state, calm_rng)
        for c in state.characters[:3]:
            medical.add_disease(c, "cholera", "test")
        for _ in range(3):
            medical.update_medical_conditions()

        outbreak = medical.active_outbreaks()[0]
        assert outbreak.control_measures[0]["type"] == "quarantine"
        assert outbreak.control_measures[0]["effectiveness"] == 0.6
        assert medical._quarantine_effectiveness(DiseaseName.CHOLERA) == 0.6
        assert state.resources.get("food") == 90
        assert state.morale.overall == pytest.approx(30.0)

    def test_outbreak_ends(self, state, medical):
        """Falling below 30% of peak ends the outbreak."""
        for c in state.characters[:3]:
            medical.add_disease(c, "cholera", "test")
        for _ in range(3):
            medical.update_medical_conditions()
        outbreak = medical.active_outbreaks()[0]

        for c in state.characters[:3]:
            c.diseases = []
        medical.check_disease_outbreaks()

        assert not outbreak.is_active
        assert outbreak.end_date == state.date
        assert outbreak.total_infected == 3
        assert medical.active_outbreaks() == []


class TestDeath:
    """Death bookkeeping and amputation."""

    def test_death_recorded_once(self, state, medical):
        """A second death call is a no-op."""
        c = state.characters[0]
        assert medical.handle_character_death(c, "test")
        assert not medical.handle_character_death(c, "test again")

        assert not c.is_alive
        assert c.cause_of_death == "test"
        assert state.population.total == 7
        assert state.population.demographics["adults"] == 7
        assert state.morale.overall == pytest.approx(50.0)
        assert "Death of Settler 0" in state.morale.recent_events
        assert state.chronicle[-1].entry_type == "death"
        assert state.chronicle[-1].severity == 8
        assert medical.deaths == 1

    def test_health_failure(self, state, medical):
        """Zero health kills during the daily update."""
        c = state.characters[0]
        medical.add_injury(c, "gunshot", "head", 1.5, "gunfight")
        c.health = 0
        medical.update_medical_conditions()
        assert not c.is_alive
        assert c.cause_of_death == "health_failure"

    def test_gangrene_in_vital_area_is_fatal(self, state, medical):
        """Gangrene behind a torso wound cannot be amputated."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "torso", 1.0, "knife")
        injury.is_infected = True
        gangrene = medical.add_disease(c, "gangrene", "infected wound")
        medical.consider_amputation(c, gangrene)
        assert not c.is_alive
        assert c.cause_of_death == "gangrene in vital area"

    def test_successful_amputation(self, eager_rng):
        """A limb comes off; the gangrene and that limb's wounds go with it."""
        state = build_state()
        medical = MedicalEngine(state, eager_rng)
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "left_arm", 1.0, "knife")
        injury.is_infected = True
        gangrene = medical.add_disease(c, "gangrene", "infected wound")

        medical.consider_amputation(c, gangrene)

        assert c.is_alive
        assert c.amputations[0]["bodyPart"] == "left_arm"
        assert "missing left arm" in c.permanent_disabilities
        assert gangrene.removed
        assert injury.removed
        assert c.health >= 30

    def test_amputation_on_last_day_is_not_also_fatal(self, eager_rng):
        """Gangrene cured by amputation on its final day does not roll for death."""
        state = build_state()
        medical = MedicalEngine(state, eager_rng)
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "left_leg", 1.0, "knife")
        injury.is_infected = True
        gangrene = medical.add_disease(c, "gangrene", "infected wound")
        gangrene.incubation_days_left = 0
        gangrene.is_symptom_present = True
        gangrene.duration_days_left = 1

        medical._update_diseases(c)

        assert c.amputations[0]["bodyPart"] == "left_leg"
        assert gangrene.removed
        assert c.is_alive
        assert c.cause_of_death is None
        assert medical.deaths == 0

    def test_failed_amputation(self, state, medical):
        """With no doctor the 30% base chance fails under a calm roll."""
        c = state.characters[0]
        injury = medical.add_injury(c, "cut", "right_leg", 1.0, "knife")
        injury.is_infected = True
        gangrene = medical.add_disease(c, "gangrene", "infected wound")
        medical.consider_amputation(c, gangrene)
        assert c.cause_of_death == "failed amputation"


class TestReports:
    """Status reports and sanitation."""

    def test_sanitation(self, state, medical):
        """Base 0.5, minus crowding, plus the well."""
        assert medical.calculate_sanitation_level() == pytest.approx(0.676)

    def test_status_report(self, state, medical):
        """A healthy settlement reports everyone healthy."""
        report = medical.get_medical_status_report()
        assert report["totalPopulation"] == 8
        assert report["healthyCount"] == 8
        assert report["healthPercentage"] == 100
        assert report["hasDoctor"] is False
        assert report["activeOutbreaks"] == []

    def test_character_details(self, state, medical):
        """Per-settler details list active conditions."""
        c = state.characters[0]
        medical.add_injury(c, "cut", "right_arm", 1.0, "knife")
        details = medical.get_character_medical_details(c)
        assert details["name"] == "Settler 0"
        assert len(details["injuries"]) == 1
        assert details["diseases"] == []

    def test_medical_log(self, state, medical):
        """Engine actions land in the medical log."""
        medical.add_injury(state.characters[0], "cut", "right_arm", 1.0, "knife")
        assert state.medical_log[-1].character == "Settler 0"
        assert "cut" in state.medical_log[-1].message

    def test_export(self, state, medical):
        """The export holds every settler's profile."""
        data = medical.export_medical_data()
        assert len(data["characterMedicalProfiles"]) == 8
        assert data["medicalKnowledge"] == 0

