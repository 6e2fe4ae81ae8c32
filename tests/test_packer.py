from collections import Counter

import pytest

from qpcr_layout.errors import ConfigurationError, GeometryError
from qpcr_layout.experiments import ExperimentMatrix
from qpcr_layout.packer import (
    PACKING_STRATEGIES, compare_strategies, first_fit, first_fit_decreasing,
    get_strategy, layout_plates, pack_in_order, run_layout,
)
from qpcr_layout.plates import plate_spec_for


def names(prefix, n):
    return ["%s%02d" % (prefix, i + 1) for i in range(n)]


def expected_cells(sample_list, reagent_list, replicate_count):
    expected = Counter()
    for samples, reagents, replicates in zip(sample_list, reagent_list, replicate_count):
        for s in samples:
            for r in reagents:
                expected[(s, r)] += replicates
    return expected


def placed_cells(plates):
    return Counter(cell for plate in plates for cell in plate.cells())


def column(tag, height):
    """A 1-column fragment whose cells are all labelled with tag."""
    return ExperimentMatrix([[(tag, "R")] for _ in range(height)])


LAYOUT_CASES = [
    (96, [["S1", "S2"]], [["R1", "R2"]], [1]),
    (96, [["S1"]], [names("R", 13)], [1]),
    (96, [names("S", 20)], [names("R", 13)], [2]),
    (96, [names("S", 9), ["A", "B"], names("T", 3)],
         [names("R", 12), names("Q", 5), ["R01"]], [1, 3, 4]),
    (384, [names("S", 16), names("U", 40)], [names("R", 5), names("R", 30)], [3, 1]),
    (96, [names("S", 16)], [["R1", "R2"]], [1]),
]


@pytest.mark.parametrize("max_well_count,sample_list,reagent_list,replicate_count", LAYOUT_CASES)
def test_every_replicate_placed_exactly_once(max_well_count, sample_list,
                                             reagent_list, replicate_count):
    plates = layout_plates(max_well_count, sample_list, reagent_list, replicate_count)
    assert placed_cells(plates) == expected_cells(sample_list, reagent_list, replicate_count)


@pytest.mark.parametrize("max_well_count,sample_list,reagent_list,replicate_count", LAYOUT_CASES)
def test_plates_keep_their_shape(max_well_count, sample_list, reagent_list, replicate_count):
    spec = plate_spec_for(max_well_count)
    plates = layout_plates(max_well_count, sample_list, reagent_list, replicate_count)
    for plate in plates:
        assert plate.wells.shape == (spec.row_count, spec.column_count)
        assert plate.wells_used.shape == (spec.row_count, spec.column_count)
        # occupancy mask and contents agree, so no well was written twice
        assert plate.filled_count == len(plate.cells())


def test_small_experiment_fits_one_plate():
    plates = layout_plates(96, [["S1", "S2"]], [["R1", "R2"]], [1])
    assert len(plates) == 1
    assert plates[0].empty_count == 92
    assert plates[0].wells[0, 0] == ("S1", "R1")
    assert plates[0].wells[1, 1] == ("S2", "R2")


def test_thirteen_single_wells_share_a_plate():
    plates = layout_plates(96, [["S1"]], [names("R", 13)], [1])
    assert len(plates) == 1
    assert plates[0].wells_used[0].all()
    assert plates[0].wells_used[1, 0]
    assert plates[0].filled_count == 13


def test_overflow_opens_new_plate():
    plates = layout_plates(96, [names("S", 9)], [names("R", 12)], [1])
    assert len(plates) == 2
    assert plates[0].filled_count == 96
    assert plates[1].filled_count == 12


def test_first_fit_decreasing_places_tallest_first():
    '''
    Ties in row count keep their original order.
    '''
    a, b, c = column("A", 2), column("B", 5), column("C", 2)
    [plate] = first_fit_decreasing([a, b, c], plate_spec_for(96))
    assert plate.wells[0, 0] == ("B", "R")
    assert plate.wells[4, 0] == ("B", "R")
    assert plate.wells[0, 1] == ("A", "R")
    assert plate.wells[0, 2] == ("C", "R")


def test_first_fit_keeps_input_order():
    a, b, c = column("A", 2), column("B", 5), column("C", 2)
    [plate] = first_fit([a, b, c], plate_spec_for(96))
    assert plate.wells[0, 0] == ("A", "R")
    assert plate.wells[0, 1] == ("B", "R")
    assert plate.wells[4, 1] == ("B", "R")
    assert plate.wells[0, 2] == ("C", "R")
    assert plate.wells[2, 0] is None


def test_oversized_fragment_raises():
    with pytest.raises(GeometryError):
        pack_in_order([column("A", 9)], plate_spec_for(96))


def test_no_fragments_no_plates():
    assert pack_in_order([], plate_spec_for(96)) == []


class TestStrategies:

    def test_registry(self):
        assert set(PACKING_STRATEGIES) == {"first_fit_decreasing", "first_fit"}
        assert get_strategy("first_fit") is first_fit
        assert get_strategy() is first_fit_decreasing

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError):
            get_strategy("optimal")
        with pytest.raises(ConfigurationError):
            layout_plates(96, [["S1"]], [["R1"]], [1], strategy="optimal")

    @pytest.mark.parametrize("name", ["", ["first_fit"], 3])
    def test_blank_or_non_string_strategy(self, name):
        '''
        Only None selects the configured default; anything else must be a
        registered name.
        '''
        with pytest.raises(ConfigurationError):
            get_strategy(name)

    def test_run_layout_result(self):
        result = run_layout(96, [["S1", "S2"]], [["R1", "R2"]], [1])
        assert result.method == "first_fit_decreasing"
        assert result.n_plates == 1
        assert result.n_fragments == 1
        assert result.filled_wells == 4
        assert result.fill_ratio == pytest.approx(4 / 96)
        d = result.to_dict()
        assert d["plate_spec"] == {"row_count": 8, "column_count": 12, "well_count": 96}
        assert len(d["plates"]) == 1
        assert "plates" not in result.to_dict(include_plates=False)

    def test_compare_strategies(self):
        comparison = compare_strategies(96, [names("S", 20)], [names("R", 13)], [1])
        summary = comparison.summary()
        assert set(summary["methods"]) == set(PACKING_STRATEGIES)
        assert summary["best"] in PACKING_STRATEGIES
        best = comparison.results[comparison.best].n_plates
        assert best == min(r.n_plates for r in comparison.results.values())

    def test_invalid_input_raises_before_packing(self):
        with pytest.raises(ConfigurationError):
            run_layout(96, [["S1"], ["S2"]], [["R1"]], [1])


def test_exact_multiple_of_plate_rows_fills_one_plate():
    '''
    16 samples on an 8-row plate: two full-height fragments side by side,
    with no empty leftover fragment.
    '''
    result = run_layout(96, [names("S", 16)], [["R1", "R2"]], [1])
    assert result.n_fragments == 2
    assert result.n_plates == 1
    assert result.filled_wells == 32
    plate = result.plates[0]
    assert plate.wells_used[:, :4].all()
    assert not plate.wells_used[:, 4:].any()
