"""
Unit tests for species tags and food-chain tables.
"""

import pytest

from oceansim.core.species import DIETS, GENDERED, POPULATE_ORDER, PRODUCERS, Species


class TestSpecies:
    def test_only_seaweed_is_a_producer(self):
        assert PRODUCERS == {Species.SEAWEED}
        assert Species.SEAWEED.is_producer
        assert all(s.is_animal for s in Species if s is not Species.SEAWEED)

    @pytest.mark.parametrize("species", list(Species))
    def test_code_roundtrip(self, species):
        assert Species.from_code(species.code) is species

    def test_populate_order(self):
        assert POPULATE_ORDER == (
            Species.ORCA, Species.SHARK, Species.SCUBADIVER,
            Species.SALMON, Species.SARDINE, Species.SEAWEED,
        )

    def test_gendered(self):
        assert GENDERED == {Species.ORCA, Species.SCUBADIVER}


class TestDiets:
    def test_food_chain(self):
        assert DIETS[Species.ORCA] == {Species.SALMON, Species.SCUBADIVER}
        assert DIETS[Species.SHARK] == {Species.SARDINE, Species.SCUBADIVER}
        assert DIETS[Species.SALMON] == {Species.SEAWEED}
        assert DIETS[Species.SARDINE] == {Species.SEAWEED}

    def test_diver_and_seaweed_eat_nothing(self):
        assert not DIETS.get(Species.SCUBADIVER)
        assert not DIETS.get(Species.SEAWEED)


class TestCodes:
    @pytest.mark.parametrize("code", [-1, len(Species), 99])
    def test_unknown_code_rejected(self, code):
        with pytest.raises(ValueError, match="code"):
            Species.from_code(code)
