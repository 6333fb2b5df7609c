"""
Tests for configuration management system.
"""

import pytest
import json

from hmmkit.config import (
    get_config, set_config, update_config,
    load_config_file, save_config_file,
    get_all_config, reset_config
)


def test_default_config():
    """Test that default configuration is loaded correctly."""
    assert get_config('learning', 'max_iterations') == 9
    assert get_config('learning', 'convergence_tolerance') is None
    assert get_config('learning', 'n_jobs') == 1

    assert get_config('opdf', 'min_variance') == 1e-6
    assert get_config('draw', 'minimum_aij') == 0.01
    assert get_config('draw', 'decimals') == 2


def test_get_config_section():
    """Test getting entire configuration sections."""
    kmeans_config = get_config('kmeans')
    assert isinstance(kmeans_config, dict)
    assert 'max_iterations' in kmeans_config
    assert 'random_seed' in kmeans_config


def test_missing_values():
    assert get_config('nonexistent') == {}
    assert get_config('learning', 'nonexistent') is None


def test_set_config():
    """Test setting individual configuration values."""
    set_config('learning', 'max_iterations', 50)
    assert get_config('learning', 'max_iterations') == 50

    set_config('test_section', 'test_key', 'test_value')
    assert get_config('test_section', 'test_key') == 'test_value'


def test_update_config():
    """Test updating configuration with dictionary."""
    update_config({
        'draw': {
            'minimum_aij': 0.2,
            'new_setting': True
        },
        'new_section': {
            'key1': 'value1'
        }
    })

    assert get_config('draw', 'minimum_aij') == 0.2
    assert get_config('draw', 'new_setting') is True
    # Untouched keys survive a partial update
    assert get_config('draw', 'decimals') == 2
    assert get_config('new_section', 'key1') == 'value1'


def test_save_and_load_config_file(temp_dir):
    """Test saving and loading configuration files."""
    config_path = temp_dir / "nested" / "config.json"
    set_config('learning', 'max_iterations', 25)

    save_config_file(str(config_path))

    with open(config_path, 'r') as f:
        saved = json.load(f)
    assert saved['learning']['max_iterations'] == 25

    reset_config()
    assert get_config('learning', 'max_iterations') == 9

    load_config_file(str(config_path))
    assert get_config('learning', 'max_iterations') == 25


def test_load_invalid_config_file(temp_dir):
    """Test loading from missing or malformed files."""
    with pytest.raises(ValueError, match="Failed to load config"):
        load_config_file(str(temp_dir / "missing.json"))

    bad_path = temp_dir / "bad.json"
    bad_path.write_text("{ not json")
    with pytest.raises(ValueError, match="Failed to load config"):
        load_config_file(str(bad_path))


def test_get_all_config_is_a_copy():
    all_config = get_all_config()
    all_config['learning']['max_iterations'] = 1000

    assert get_config('learning', 'max_iterations') == 9


def test_reset_config():
    """Test resetting configuration to defaults."""
    set_config('learning', 'max_iterations', 3)
    set_config('test_section', 'test_key', 'test_value')

    reset_config()

    assert get_config('learning', 'max_iterations') == 9
    assert get_config('test_section', 'test_key') is None


def test_environment_overrides(monkeypatch):
    """Environment variables are applied on reset."""
    monkeypatch.setenv('HMMKIT_MAX_ITERATIONS', '17')
    monkeypatch.setenv('HMMKIT_N_JOBS', 'many')

    reset_config()

    assert get_config('learning', 'max_iterations') == 17
    # Invalid values are ignored
    assert get_config('learning', 'n_jobs') == 1


def test_environment_config_file(monkeypatch, temp_dir):
    config_path = temp_dir / "env_config.json"
    config_path.write_text(json.dumps({'kmeans': {'max_iterations': 7}}))
    monkeypatch.setenv('HMMKIT_CONFIG', str(config_path))

    reset_config()

    assert get_config('kmeans', 'max_iterations') == 7
