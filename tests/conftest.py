"""Shared pytest fixtures: a small CodeIgniter 3 project on disk."""

import json
from pathlib import Path

import pytest

from ci4_upgrader.context import PipelineRun
from ci4_upgrader.mappings import load_mappings


HOME_CONTROLLER = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

class Home extends CI_Controller {

    function index()
    {
        $this->load->model('User_model');
        $data['users'] = $this->User_model->get_all();
        $data['name'] = $this->input->post('name');
        $this->load->view('home', $data);
    }

    private function secret()
    {
        return $this->session->userdata('token');
    }
}
"""

USER_MODEL = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

class User_model extends CI_Model {

    public function get_all()
    {
        return $this->db->get('users')->result();
    }

    function count_users()
    {
        return $this->db->get('users')->num_rows();
    }
}
"""

HOME_VIEW = """<h1><?php echo $title; ?></h1>
<a href="<?php echo site_url('home'); ?>">Home</a>
"""

FORM_VIEW = """<?php echo form_open('users/save'); ?>
<?php echo form_input('email'); ?>
<?php echo form_error('email'); ?>
<?php echo form_close(); ?>
"""

CONFIG_PHP = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

$config['base_url'] = 'http://x';
$config['index_page'] = '';
$config['proxy_ips'] = array(
    '10.0.0.1'
);
"""

DATABASE_PHP = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

$active_group = 'default';
$query_builder = TRUE;

$db['default'] = array(
    'dsn'      => '',
    'hostname' => 'db.internal',
    'username' => 'shop',
    'password' => 's3cr\\'et',
    'database' => 'shop_prod',
    'dbdriver' => 'mysqli',
    'db_debug' => (ENVIRONMENT !== 'production'),
    'failover' => array(),
    'save_queries' => TRUE
);
"""

ROUTES_PHP = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

$route['default_controller'] = 'home';
$route['404_override'] = '';
$route['translate_uri_dashes'] = FALSE;
$route['users/(:num)'] = 'users/show/$1';
"""

AUTOLOAD_PHP = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

$autoload['libraries'] = array('database');
"""

URL_HELPER = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

function asset_url($path)
{
    return base_url('assets/' . $path);
}
"""

SETTINGS_LIBRARY = """<?php
defined('BASEPATH') OR exit('No direct script access allowed');

class Settings extends CI_Config {
}
"""

ENV_TEMPLATE = """#--------------------------------------------------------------------
# ENVIRONMENT
#--------------------------------------------------------------------

# CI_ENVIRONMENT = production

#--------------------------------------------------------------------
# DATABASE
#--------------------------------------------------------------------

# database.default.hostname = localhost
# database.default.database = ci4
# database.default.username = root
# database.default.password = root
# database.default.DBDriver = MySQLi
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path


@pytest.fixture
def mappings():
    return load_mappings()


@pytest.fixture
def legacy_project(tmp_path):
    """A CI3 project with one controller, model, two views and config files."""
    root = tmp_path / 'shop'
    app = root / 'application'
    write(app / 'controllers' / 'Home.php', HOME_CONTROLLER)
    write(app / 'models' / 'User_model.php', USER_MODEL)
    write(app / 'views' / 'home.php', HOME_VIEW)
    write(app / 'views' / 'users' / 'form.php', FORM_VIEW)
    write(app / 'config' / 'config.php', CONFIG_PHP)
    write(app / 'config' / 'database.php', DATABASE_PHP)
    write(app / 'config' / 'routes.php', ROUTES_PHP)
    write(app / 'config' / 'autoload.php', AUTOLOAD_PHP)
    write(app / 'helpers' / 'asset_helper.php', URL_HELPER)
    write(app / 'libraries' / 'Settings.php', SETTINGS_LIBRARY)
    write(root / 'composer.json', json.dumps({
        'require': {'php': '>=5.6', 'phpmailer/phpmailer': '^6.8'}
    }))
    return root


@pytest.fixture
def run(legacy_project, mappings):
    """A PipelineRun whose target tree is an empty directory."""
    pipeline_run = PipelineRun.create(legacy_project, mappings)
    pipeline_run.target_path.mkdir()
    return pipeline_run


def fake_create_project(target_path, package, version, composer):
    """Stand-in for ``composer create-project``: lays down a minimal skeleton."""
    target = Path(target_path)
    write(target / 'app' / 'Config' / 'App.php', '<?php // skeleton\n')
    write(target / 'env', ENV_TEMPLATE)
    write(target / 'composer.json', json.dumps({
        'name': 'codeigniter4/appstarter',
        'require': {'php': '^7.4 || ^8.0', 'codeigniter4/framework': '^4.0'},
    }, indent=4))


@pytest.fixture
def fake_skeleton():
    return fake_create_project
