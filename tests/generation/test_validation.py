"""Tests for post-generation validation."""

from unittest.mock import patch

from railmap.board import Board, City, Lake, Milepost, River
from railmap.config import BoardConfig, CityConfig, LakeConfig, RiverConfig
from railmap.generation.validation import ValidationResult, validate_board
from railmap.types import CitySize, RiverSource, RiverTermination

SQUARE = ((0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0), (0.0, 0.0))

QUIET = BoardConfig(
    lakes=LakeConfig(count=0),
    cities=CityConfig(major_count=0),
    rivers=RiverConfig(count=0),
)


def make_board(**kwargs) -> Board:
    fields = {"config": QUIET, "boundary": SQUARE}
    fields.update(kwargs)
    return Board(**fields)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_starts_passed(self) -> None:
        """A fresh result passes."""
        assert ValidationResult().passed

    def test_error_fails(self) -> None:
        """Errors fail the result; warnings do not."""
        result = ValidationResult()
        result.add_warning("short")
        assert result.passed
        result.add_error("broken")
        assert not result.passed
        assert result.errors == ["broken"]
        assert result.warnings == ["short"]


class TestValidateBoard:
    """Tests for validate_board."""

    def test_generated_board_passes(self, board: Board) -> None:
        """A freshly generated board has no errors."""
        result = validate_board(board)
        assert result.errors == []
        assert result.passed

    def test_clean_board(self) -> None:
        """A minimal consistent board passes with no warnings."""
        board = make_board(mileposts=(Milepost(milepost_id=0, x=50.0, y=50.0, cost=1),))
        result = validate_board(board)
        assert result.passed
        assert result.warnings == []

    def test_milepost_outside(self) -> None:
        """Mileposts beyond the boundary are errors."""
        board = make_board(mileposts=(Milepost(milepost_id=0, x=150.0, y=50.0, cost=1),))
        result = validate_board(board)
        assert not result.passed
        assert any("outside the boundary" in e for e in result.errors)

    def test_milepost_in_lake(self) -> None:
        """Mileposts inside a lake are errors."""
        lake = Lake(lake_id=0, points=((40.0, 40.0), (60.0, 40.0), (60.0, 60.0), (40.0, 60.0), (40.0, 40.0)))
        board = make_board(
            lakes=(lake,),
            mileposts=(Milepost(milepost_id=0, x=50.0, y=50.0, cost=1),),
        )
        result = validate_board(board)
        assert any("inside lake 0" in e for e in result.errors)

    def test_shared_cell(self) -> None:
        """A regular milepost on a city anchor is an error."""
        city = City(city_id=0, name="Carrow", size=CitySize.SMALL, anchors=((50.0, 50.0),), goods=("Fish",))
        board = make_board(
            cities=(city,),
            mileposts=(
                Milepost(milepost_id=0, x=50.0, y=50.0, cost=1),
                Milepost(milepost_id=1, x=50.0, y=50.0, cost=3, city_id=0),
            ),
        )
        result = validate_board(board)
        assert any("share a grid cell" in e for e in result.errors)

    def test_river_near_milepost(self) -> None:
        """River points inside a milepost buffer are errors."""
        river = River(
            river_id=0,
            points=((10.0, 10.0), (50.0, 51.0), (100.0, 50.0)),
            source=RiverSource.INTERIOR,
            termination=RiverTermination.REACHED_END,
        )
        board = make_board(
            mileposts=(Milepost(milepost_id=0, x=50.0, y=50.0, cost=1),),
            rivers=(river,),
        )
        result = validate_board(board)
        assert any("within" in e for e in result.errors)

    def test_shortfall_is_warning(self) -> None:
        """Fewer features than requested only warns."""
        board = Board(
            config=BoardConfig(),
            boundary=SQUARE,
            mileposts=(Milepost(milepost_id=0, x=50.0, y=50.0, cost=1),),
        )
        result = validate_board(board)
        assert result.passed
        assert any("lakes" in w for w in result.warnings)
        assert any("rivers" in w for w in result.warnings)

    def test_logs_outcome(self) -> None:
        """By default the outcome and each warning are logged."""
        board = Board(config=BoardConfig(), boundary=SQUARE)
        with patch("railmap.generation.validation.logger") as logger:
            validate_board(board)
        logger.info.assert_called_once_with("board_validation_passed", warnings=5)
        assert logger.warning.call_count == 5

    def test_silent(self) -> None:
        """log=False returns the same findings without logging."""
        board = Board(config=BoardConfig(), boundary=SQUARE)
        with patch("railmap.generation.validation.logger") as logger:
            result = validate_board(board, log=False)
        assert len(result.warnings) == 5
        assert not logger.method_calls
