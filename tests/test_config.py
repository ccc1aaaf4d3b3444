"""Tests for kernel configuration and logging setup."""

import logging

import pytest
import structlog

from brepcad.config import KernelConfig, config_from_env, get_config
from brepcad.log import LOG_LEVELS, configure_logging, get_logger


class TestConfig:

    def test_defaults(self):
        cfg = KernelConfig()
        assert cfg.epsilon == 1e-7
        assert cfg.distinct_min_distance == 5e-7
        assert cfg.curve_segments == 64
        assert cfg.log_level == 'WARNING'

    def test_process_config_is_shared(self):
        assert get_config() is get_config()

    def test_from_env(self):
        cfg = config_from_env({
            'BREPCAD_EPSILON': '1e-6',
            'BREPCAD_CURVE_SEGMENTS': '16',
            'BREPCAD_LOG_LEVEL': 'debug',
        })
        assert cfg.epsilon == 1e-6
        assert cfg.distinct_min_distance == pytest.approx(5e-6)
        assert cfg.curve_segments == 16
        assert cfg.revolve_segments == 32
        assert cfg.log_level == 'DEBUG'

    def test_empty_values_are_ignored(self):
        assert config_from_env({'BREPCAD_EPSILON': ''}) == KernelConfig()

    def test_bad_number(self):
        with pytest.raises(ValueError, match='BREPCAD_SWEEP_SEGMENTS'):
            config_from_env({'BREPCAD_SWEEP_SEGMENTS': 'many'})

    @pytest.mark.parametrize('overrides', [
        {'epsilon': 0.0},
        {'epsilon': 1e-6, 'distinct_min_distance': 1e-7},
        {'edge_samples': 1},
        {'revolve_segments': 2},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            KernelConfig(**overrides)

    def test_with_overrides(self):
        cfg = KernelConfig().with_overrides(curve_segments=8)
        assert cfg.curve_segments == 8
        assert KernelConfig().curve_segments == 64


class TestLogging:

    def test_levels(self):
        assert LOG_LEVELS['DEBUG'] == logging.DEBUG
        assert set(LOG_LEVELS) == {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging('chatty')

    def test_json_output(self, capsys):
        configure_logging('info', enable_json=True)
        log = get_logger('brepcad.test')
        log.debug('hidden')
        log.info('shown', faces=6)
        err = capsys.readouterr().err
        assert 'hidden' not in err
        assert '"event": "shown"' in err
        assert '"faces": 6' in err

    def test_extra_processors(self, capsys):
        def _tag(logger, method, event_dict):
            event_dict['kernel'] = 'brepcad'
            return event_dict

        configure_logging('debug', enable_json=True, extra_processors=[_tag])
        get_logger('brepcad.test.extra').debug('tagged')
        assert '"kernel": "brepcad"' in capsys.readouterr().err

    def test_events_can_be_captured(self, captured_logs):
        get_logger('brepcad.test.capture').debug('probe', value=1)
        assert captured_logs == [{'event': 'probe', 'value': 1, 'log_level': 'debug'}]

    def test_reset_between_tests(self):
        assert not structlog.is_configured()
