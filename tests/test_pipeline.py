"""Tests for the upgrade pipeline (composer calls are patched out)."""

import io
import json
from datetime import datetime
from unittest.mock import patch

import pytest

from ci4_upgrader.context import ComposerError, InvalidProjectError, PipelineRun
from ci4_upgrader.pipeline import Upgrader


@pytest.fixture
def patched_composer(fake_skeleton):
    with patch('ci4_upgrader.composer.find_composer', return_value='composer') as find, \
            patch('ci4_upgrader.composer.create_project', side_effect=fake_skeleton) as create, \
            patch('ci4_upgrader.composer.update_dependencies') as update:
        yield find, create, update


def make_upgrader(legacy_project, mappings):
    run = PipelineRun.create(legacy_project, mappings)
    return Upgrader(run, out=io.StringIO())


class TestPipelineRun:

    def test_paths(self, tmp_path, mappings):
        run = PipelineRun.create(str(tmp_path / 'shop') + '/', mappings,
                                 now=datetime(2024, 3, 5, 14, 7, 9))
        assert run.backup_path == tmp_path / 'shop_backup_2024-03-05_14-07-09'
        assert run.target_path.name.startswith('shop_ci4')
        assert len(run.target_path.name) == len('shop_ci4') + 13

    def test_target_paths_are_unique(self, tmp_path, mappings):
        first = PipelineRun.create(tmp_path / 'shop', mappings)
        second = PipelineRun.create(tmp_path / 'shop', mappings)
        assert first.target_path != second.target_path


class TestUpgrade:

    def test_stage_order(self, legacy_project, mappings):
        labels = [stage.label for stage in make_upgrader(legacy_project, mappings).stages]
        assert len(labels) == 12
        assert labels[0] == 'Creating backup...'
        assert labels.index('Migrating models...') < labels.index('Migrating controllers...')
        assert labels[-1] == 'Setting up environment...'

    def test_end_to_end(self, legacy_project, mappings, patched_composer):
        upgrader = make_upgrader(legacy_project, mappings)
        run = upgrader.upgrade()

        assert run.outcome == 'done'
        assert run.current_step == run.total_steps == 12
        assert run.backup_path.joinpath('application', 'controllers', 'Home.php').is_file()

        controller = (run.target_path / 'app' / 'Controllers' / 'Home.php').read_text()
        assert "return view('home', $data);" in controller
        assert 'load->model' not in controller
        assert 'UserModel::get_all()' in controller

        assert (run.target_path / 'app' / 'Models' / 'UserModel.php').is_file()
        assert (run.target_path / 'app' / 'Config' / 'Routes.php').is_file()
        assert 'AutoloadConfig' in (run.target_path / 'app' / 'Config' / 'Autoload.php').read_text()

        composer_json = json.loads((run.target_path / 'composer.json').read_text())
        assert composer_json['require']['phpmailer/phpmailer'] == '^6.8'
        assert composer_json['require']['php'] == '^7.4 || ^8.0'

        env = (run.target_path / '.env').read_text()
        assert 'database.default.hostname = db.internal' in env
        assert 'CI_ENVIRONMENT = development' in env

        _, _, update = patched_composer
        update.assert_called_once_with(run.target_path, 'composer')

    def test_progress_output(self, legacy_project, mappings, patched_composer):
        upgrader = make_upgrader(legacy_project, mappings)
        upgrader.upgrade()
        output = upgrader.out.getvalue()
        assert '] 8% Creating backup...' in output
        assert '] 100% Setting up environment...' in output
        assert output.endswith('\n')

    def test_legacy_tree_not_mutated(self, legacy_project, mappings, patched_composer):
        before = {p: p.read_bytes() for p in legacy_project.rglob('*') if p.is_file()}
        make_upgrader(legacy_project, mappings).upgrade()
        after = {p: p.read_bytes() for p in legacy_project.rglob('*') if p.is_file()}
        assert before == after


class TestFailures:

    def test_missing_application_folder(self, tmp_path, mappings, patched_composer):
        source = tmp_path / 'not_ci3'
        source.mkdir()
        upgrader = make_upgrader(source, mappings)

        with pytest.raises(InvalidProjectError):
            upgrader.upgrade()

        assert upgrader.run.outcome == 'failed'
        assert not upgrader.run.backup_path.exists()
        assert not upgrader.run.target_path.exists()
        _, create, _ = patched_composer
        create.assert_not_called()

    def test_composer_failure_rolls_back_target(self, legacy_project, mappings):
        def broken_create(target_path, package, version, composer):
            target_path.mkdir()
            (target_path / 'partial.txt').write_text('half done')
            raise ComposerError('Failed to download CodeIgniter 4: network down')

        upgrader = make_upgrader(legacy_project, mappings)
        with patch('ci4_upgrader.composer.find_composer', return_value='composer'), \
                patch('ci4_upgrader.composer.create_project', side_effect=broken_create):
            with pytest.raises(ComposerError, match='network down'):
                upgrader.upgrade()

        run = upgrader.run
        assert run.outcome == 'failed'
        assert 'network down' in run.error
        assert not run.target_path.exists()
        assert run.backup_path.is_dir()
        assert (legacy_project / 'application').is_dir()

    def test_late_failure_rolls_back_target(self, legacy_project, mappings, fake_skeleton):
        upgrader = make_upgrader(legacy_project, mappings)
        with patch('ci4_upgrader.composer.find_composer', return_value='composer'), \
                patch('ci4_upgrader.composer.create_project', side_effect=fake_skeleton), \
                patch('ci4_upgrader.composer.update_dependencies',
                      side_effect=ComposerError('Composer command failed')):
            with pytest.raises(ComposerError):
                upgrader.upgrade()

        assert upgrader.run.current_label == 'Updating composer.json...'
        assert not upgrader.run.target_path.exists()
