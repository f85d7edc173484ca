import pytest

from fuzzy_forest.base import BaseEngine


class DummyEngine(BaseEngine):
    def _get_engine_directory_name(self) -> str:
        return "99_Dummy"

    def execute(self):
        return "done"


def test_directory_created_when_saving(tmp_path, mock_logger):
    config = {'outputs': {'base_results_dir': str(tmp_path), 'save_artifacts': True}}

    engine = DummyEngine(config, mock_logger)

    assert engine.output_dir == tmp_path / "99_Dummy"
    assert engine.output_dir.is_dir()
    mock_logger.info.assert_called_once()


def test_no_directory_for_in_memory_runs(tmp_path, mock_logger):
    config = {'outputs': {'base_results_dir': str(tmp_path), 'save_artifacts': False}}

    engine = DummyEngine(config, mock_logger)

    assert not engine.output_dir.exists()
    assert engine.execute() == "done"


def test_abstract_engine_cannot_be_built(mock_logger):
    with pytest.raises(TypeError):
        BaseEngine({}, mock_logger)
