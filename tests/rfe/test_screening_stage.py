import copy
import logging
from unittest.mock import patch

import numpy as np
import pytest

from fuzzy_forest.config_manager import ConfigurationManager
from fuzzy_forest.module_partition import group_modules
from fuzzy_forest.oracle import ForestImportanceOracle
from fuzzy_forest.rfe import ScreeningStage
from fuzzy_forest.utils.exceptions import ConfigurationError, OracleFailure


def _index_scores(columns):
    """Score f<i> as i: later features are always more important."""
    return {c: float(c[1:]) for c in columns}


class TestScreeningStage:

    def test_two_modules_keep_half(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)

        result = stage.execute(X, y, group_modules(membership))

        survivors = result.survivors()
        assert survivors['A'] == ['f6', 'f7', 'f8', 'f9', 'f10']
        assert survivors['B'] == ['f16', 'f17', 'f18', 'f19', 'f20']
        assert result.n_survivors == 10

    def test_survivors_are_subset_of_module(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls({c: float(int(c[1:]) % 3) for c in X.columns})
        stage = ScreeningStage(base_config, mock_logger, oracle)
        modules = group_modules(membership)

        result = stage.execute(X, y, modules)

        for module, features in modules.items():
            assert set(result.survivors()[module]) <= set(features)
        for feature, module in result.survivor_modules().items():
            assert membership[feature] == module

    def test_oracle_only_sees_one_module_per_call(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)

        stage.execute(X, y, group_modules(membership))

        for call in oracle.calls:
            assert len({membership[f] for f in call['features']}) == 1

    def test_single_feature_module_skips_oracle(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, _ = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)

        result = stage.execute(X, y, {'solo': ['f4']})

        assert result.survivors() == {'solo': ['f4']}
        assert result.modules['solo'].n_rounds == 0
        assert oracle.calls == []

    def test_module_at_target_skips_oracle(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, _ = twenty_features
        base_config['screening']['keep_fraction'] = 1.0
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)

        result = stage.execute(X, y, {'A': ['f1', 'f2', 'f3']})

        assert result.survivors() == {'A': ['f1', 'f2', 'f3']}
        assert oracle.calls == []

    def test_caller_modules_are_not_mutated(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)
        modules = group_modules(membership)
        snapshot = copy.deepcopy(modules)

        stage.execute(X, y, modules)

        assert modules == snapshot

    def test_module_seeds_differ(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)

        result = stage.execute(X, y, group_modules(membership))

        assert stage.module_seed(0) == 7 + 1000
        assert result.modules['A'].rounds[0].seed == stage.module_seed(0)
        assert result.modules['B'].rounds[0].seed == stage.module_seed(1)

    def test_no_seed_when_unseeded(self, base_config, stub_oracle_cls, mock_logger):
        base_config['execution']['seed'] = None
        stage = ScreeningStage(base_config, mock_logger, stub_oracle_cls())
        assert stage.module_seed(3) is None

    def test_failure_names_module(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns), fail_on={'f12'})
        stage = ScreeningStage(base_config, mock_logger, oracle)

        with pytest.raises(OracleFailure) as exc_info:
            stage.execute(X, y, group_modules(membership))

        assert exc_info.value.stage == 'screening'
        assert exc_info.value.module == 'B'

    def test_parallel_matches_sequential(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        modules = group_modules(membership)

        sequential = ScreeningStage(base_config, mock_logger, stub_oracle_cls(_index_scores(X.columns)))
        parallel_config = copy.deepcopy(base_config)
        parallel_config['execution']['num_workers'] = 2
        parallel = ScreeningStage(parallel_config, mock_logger, stub_oracle_cls(_index_scores(X.columns)))

        assert sequential.execute(X, y, modules).survivors() == parallel.execute(X, y, modules).survivors()

    def test_parallel_failure_fails_stage(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        base_config['execution']['num_workers'] = 2
        oracle = stub_oracle_cls(_index_scores(X.columns), fail_on={'f3'})
        stage = ScreeningStage(base_config, mock_logger, oracle)

        with pytest.raises(OracleFailure):
            stage.execute(X, y, group_modules(membership))

    def test_results_follow_module_order(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, _ = twenty_features
        oracle = stub_oracle_cls(_index_scores(X.columns))
        stage = ScreeningStage(base_config, mock_logger, oracle)
        modules = {'z': ['f1', 'f2'], 'a': ['f3', 'f4']}

        result = stage.execute(X, y, modules)

        assert list(result.modules) == ['z', 'a']

    def test_history_frame_has_module_column(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        stage = ScreeningStage(base_config, mock_logger, stub_oracle_cls(_index_scores(X.columns)))

        history = stage.execute(X, y, group_modules(membership)).history_frame()

        assert 'module' in history.columns
        assert set(history['module']) == {'A', 'B'}
        assert len(history) == 4

    @pytest.mark.parametrize("key,value", [
        ('keep_fraction', 0.0),
        ('keep_fraction', 1.5),
        ('drop_fraction', 0.0),
        ('mtry_factor', -1.0),
        ('min_n_tree', 0),
    ])
    def test_invalid_params_rejected(self, base_config, stub_oracle_cls, mock_logger, key, value):
        base_config['screening'][key] = value
        oracle = stub_oracle_cls()

        with pytest.raises(ConfigurationError):
            ScreeningStage(base_config, mock_logger, oracle)
        assert oracle.calls == []

    def test_rounds_logged_after_join(self, base_config, twenty_features, stub_oracle_cls, mock_logger):
        X, y, membership = twenty_features
        stage = ScreeningStage(base_config, mock_logger, stub_oracle_cls(_index_scores(X.columns)))

        result = stage.execute(X, y, group_modules(membership))

        assert stage.eliminator.log_rounds is False
        round_logs = [c.args[0] for c in mock_logger.info.call_args_list if ' Round ' in c.args[0]]
        assert len(round_logs) == sum(res.n_rounds for res in result.modules.values())
        assert round_logs[0].startswith("[screening:A] Round 0 | pool=10")
        assert round_logs[-1].startswith("[screening:B] Round 1 | pool=7")

    def test_uses_resolved_worker_count(self, base_config, stub_oracle_cls, mock_logger):
        base_config['execution']['num_workers'] = -1
        with patch('psutil.cpu_count', return_value=3):
            config = ConfigurationManager.from_dict(base_config).load_and_validate()

        stage = ScreeningStage(config, mock_logger, stub_oracle_cls())

        assert stage.num_workers == 3


# --- Process backend ---

@pytest.fixture
def loky_config(base_config):
    config = copy.deepcopy(base_config)
    config['execution'].update({'num_workers': 2, 'backend': 'loky'})
    config['forest'] = {'model': 'RandomForest', 'n_jobs': 1}
    return config


class TestScreeningAcrossProcesses:

    def test_matches_in_process_run(self, base_config, loky_config, twenty_features):
        X, y, membership = twenty_features
        logger = logging.getLogger("fuzzy_forest.tests.screening")
        modules = group_modules(membership)

        in_process = ScreeningStage(base_config, logger, ForestImportanceOracle(loky_config, logger))
        across = ScreeningStage(loky_config, logger, ForestImportanceOracle(loky_config, logger))

        assert across.execute(X, y, modules).survivors() == in_process.execute(X, y, modules).survivors()

    def test_round_lines_reach_parent_handlers(self, loky_config, twenty_features, caplog):
        X, y, membership = twenty_features
        logger = logging.getLogger("fuzzy_forest.tests.screening")
        stage = ScreeningStage(loky_config, logger, ForestImportanceOracle(loky_config, logger))

        with caplog.at_level(logging.INFO, logger="fuzzy_forest.tests.screening"):
            result = stage.execute(X, y, group_modules(membership))

        round_lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("[screening:")]
        assert len(round_lines) == sum(res.n_rounds for res in result.modules.values())
        assert any(line.startswith("[screening:B] Round 0") for line in round_lines)

    def test_failure_crosses_process_boundary(self, loky_config, twenty_features):
        X, y, membership = twenty_features
        X = X.copy()
        X.loc[0, 'f12'] = np.nan
        logger = logging.getLogger("fuzzy_forest.tests.screening")
        stage = ScreeningStage(loky_config, logger, ForestImportanceOracle(loky_config, logger))

        with pytest.raises(OracleFailure) as exc_info:
            stage.execute(X, y, group_modules(membership))

        assert exc_info.value.stage == 'screening'
        assert exc_info.value.module == 'B'


def test_progress_tracks_completed_modules(base_config, twenty_features, stub_oracle_cls, mock_logger):
    X, y, membership = twenty_features
    base_config['execution']['show_progress'] = True
    stage = ScreeningStage(base_config, mock_logger, stub_oracle_cls(_index_scores(X.columns)))

    with patch('fuzzy_forest.rfe.screening_stage.tqdm', side_effect=lambda it, **kwargs: it) as progress:
        result = stage.execute(X, y, group_modules(membership))

    assert progress.call_args.kwargs['total'] == 2
    assert progress.call_args.kwargs['disable'] is False
    assert result.n_survivors == 10
