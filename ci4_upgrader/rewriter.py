"""
rewriter.py
Text-level CI3 -> CI4 rewrite primitives.

Every function here takes PHP source as a string and returns the rewritten
string; nothing touches the filesystem. The rewrites are regex based, not
syntax aware, so they inherit the usual limitations:

- call-path substitution is plain substring replacement
- captured call arguments stop at the first ");" (nested calls get cut)
- model references are rewritten wherever the property name appears

Rules that find nothing are no-ops. Callers that want to know which rules
missed pass a ``notes`` list, which collects the rule names.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

ACCESS_GUARD_PATTERN = re.compile(
    r"defined\('BASEPATH'\) OR exit\('No direct script access allowed'\);"
)
LOOSE_ACCESS_GUARD_PATTERN = re.compile(r'defined\(.*?\)\s*OR\s*exit\([^\)]+\);')

MODEL_PROPERTIES = """
    protected $table;
    protected $primaryKey = 'id';
    protected $useAutoIncrement = true;
    protected $returnType = 'array';
    protected $useSoftDeletes = false;
    protected $allowedFields = [];
    protected $useTimestamps = false;
    protected $createdField = 'created_at';
    protected $updatedField = 'updated_at';
    protected $deletedField = 'deleted_at';
"""


@dataclass
class RewriteRule:
    """A single regex -> replacement rewrite."""
    name: str
    pattern: str
    replacement: Union[str, Callable]
    flags: int = 0

    def apply(self, content: str, notes: Optional[List[str]] = None) -> str:
        new_content, count = re.subn(self.pattern, self.replacement, content, flags=self.flags)
        if count == 0 and notes is not None:
            notes.append(self.name)
        return new_content


def apply_rules(content: str, rules: List[RewriteRule],
                notes: Optional[List[str]] = None) -> str:
    """Apply rules in order, each on the output of the previous one."""
    for rule in rules:
        content = rule.apply(content, notes)
    return content


LOADER_RULES = [
    RewriteRule('load_view', r'\$this->load->view\((.*?)\);', r'return view(\1);'),
    RewriteRule('load_model', r'\$this->load->model\([\'"](.+?)[\'"]\);', ''),
    RewriteRule('load_library', r'\$this->load->library\([\'"](.+?)[\'"]\);',
                r'use App\\Libraries\\\1;'),
    RewriteRule('load_helper', r'\$this->load->helper\([\'"](.+?)[\'"]\);', r"helper('\1');"),
]

SESSION_RULES = [
    RewriteRule('session_userdata', r'\$this->session->userdata\([\'"](.+?)[\'"]\)',
                r"session()->get('\1')"),
    RewriteRule('session_set_userdata', r'\$this->session->set_userdata\(([^)]+)\)',
                r'session()->set(\1)'),
    RewriteRule('session_unset_userdata', r'\$this->session->unset_userdata\([\'"](.+?)[\'"]\)',
                r"session()->remove('\1')"),
]

RESULT_RULES = [
    RewriteRule('result', r'->result\(\)', '->getResult()'),
    RewriteRule('row', r'->row\(\)', '->getRow()'),
    RewriteRule('row_array', r'->row_array\(\)', '->getRowArray()'),
    RewriteRule('result_array', r'->result_array\(\)', '->getResultArray()'),
    RewriteRule('num_rows', r'->num_rows\(\)', '->countAllResults()'),
]

VISIBILITY_KEYWORDS = ('public', 'private', 'protected')


def _add_public(match) -> str:
    modifiers = match.group(1)
    if any(keyword in modifiers.split() for keyword in VISIBILITY_KEYWORDS):
        return match.group(0)
    return f'{modifiers}public function {match.group(2)}('


VISIBILITY_RULE = RewriteRule(
    'visibility',
    r'\b((?:(?:public|private|protected|static|abstract|final)\s+)*)function\s+(\w+)\s*\(',
    _add_public,
)

DUPLICATE_VISIBILITY_RULE = RewriteRule(
    'duplicate_visibility', r'public\s+public\s+function', 'public function'
)


def strip_access_guard(content: str, loose: bool = False,
                       notes: Optional[List[str]] = None) -> str:
    """Remove the CI3 direct-script-access guard.

    The strict form only matches the stock BASEPATH guard; the loose form
    (used for config files) matches any ``defined(...) OR exit(...);``.
    """
    pattern = LOOSE_ACCESS_GUARD_PATTERN if loose else ACCESS_GUARD_PATTERN
    new_content, count = pattern.subn('', content)
    if count == 0 and notes is not None:
        notes.append('access_guard')
    return new_content


def add_namespace(namespace: str, content: str) -> str:
    """Insert ``namespace <N>;`` as the second line of the file.

    Line 0 is assumed to hold the opening ``<?php`` tag. Content that already
    declares the same namespace is returned unchanged.
    """
    declaration = f'namespace {namespace};'
    lines = content.split('\n')
    if any(line.strip() == declaration for line in lines):
        return content
    lines.insert(1, declaration)
    return '\n'.join(lines)


def add_use_statement(content: str, cls: str) -> str:
    """Insert ``use <cls>;`` (preceded by a blank line) after the namespace line.

    Does nothing when the file has no namespace line yet, or already imports
    the class.
    """
    statement = f'use {cls};'
    lines = content.split('\n')
    if any(line.strip() == statement for line in lines):
        return content

    for i, line in enumerate(lines):
        if line.startswith('namespace '):
            lines[i + 1:i + 1] = ['', statement]
            break

    return '\n'.join(lines)


def replace_method_calls(content: str, method_mappings: Dict[str, str]) -> str:
    """Literal ``$this-><old>`` -> ``$this-><new>`` substitution for every pair."""
    for old, new in method_mappings.items():
        content = content.replace('$this->' + old, '$this->' + new)
    return content


def update_database_queries(content: str, notes: Optional[List[str]] = None) -> str:
    """CI3 result-set accessors -> CI4 names."""
    return apply_rules(content, RESULT_RULES, notes)


def update_session_handling(content: str, notes: Optional[List[str]] = None) -> str:
    """``$this->session`` userdata calls -> ``session()`` helper calls."""
    return apply_rules(content, SESSION_RULES, notes)


def update_ci3_syntax(content: str, method_mappings: Dict[str, str],
                      notes: Optional[List[str]] = None) -> str:
    """Generic controller rewrite chain.

    Order: loader calls, session calls, literal method mappings, result
    accessors. Session rules must see ``$this->session->userdata`` before the
    literal pass renames it to ``$this->session->get``.
    """
    content = apply_rules(content, LOADER_RULES, notes)
    content = update_session_handling(content, notes)
    content = replace_method_calls(content, method_mappings)
    content = update_database_queries(content, notes)
    return content


def normalize_visibility(content: str, notes: Optional[List[str]] = None) -> str:
    """Make ``function name(`` without a visibility keyword ``public``."""
    return VISIBILITY_RULE.apply(content, notes)


def dedupe_visibility(content: str) -> str:
    return DUPLICATE_VISIBILITY_RULE.apply(content)


def convert_to_ci4_model_name(class_name: str) -> str:
    """``user_profile_model`` -> ``UserProfileModel``, ``Auth`` -> ``AuthModel``."""
    name = re.sub(r'_model$', '', class_name.lower())
    name = ''.join(part.capitalize() for part in name.split('_'))
    return name + 'Model'


def rewrite_model_references(content: str, model_map: Dict[str, str]) -> str:
    """Drop model loads and turn ``$this-><old>->`` calls into ``<New>::`` calls.

    Names absent from ``model_map`` are left alone.
    """
    for old_name, new_name in model_map.items():
        quoted = re.escape(old_name)
        content = re.sub(r'\$this->load->model\([\'"]' + quoted + r'[\'"]\);', '', content)
        content = re.sub(r'\$this->' + quoted + r'->', lambda m, new=new_name: new + '::', content)
    return content


def short_class_name(class_name: str) -> str:
    """``CodeIgniter\\Model`` -> ``Model``."""
    return class_name.rpartition('\\')[2]


def qualify_class(class_name: str, namespace: str = '') -> str:
    """Reference to ``class_name`` as written inside ``namespace``.

    Classes declared in the same namespace are referenced by their short name;
    everything else gets a leading backslash so PHP does not resolve it
    relative to the current namespace.
    """
    class_name = class_name.lstrip('\\')
    class_namespace, _, short_name = class_name.rpartition('\\')
    if class_namespace == namespace.strip('\\'):
        return short_name
    return '\\' + class_name


def rewrite_class_extensions(content: str, class_mappings: Dict[str, str],
                             namespace: str = '') -> str:
    """``extends CI_Xxx`` -> ``extends <CI4 class>`` for class-valued mappings.

    ``namespace`` is the namespace the rewritten file declares; targets are
    qualified against it. Entries that map to a service call
    (``Config\\Services::session()``) cannot be a parent class and are skipped.
    """
    for old, new in class_mappings.items():
        if '(' in new or '::' in new:
            continue
        parent = qualify_class(new, namespace)
        content = re.sub(r'\bextends\s+' + re.escape(old) + r'\b',
                         lambda m, parent=parent: 'extends ' + parent, content)
    return content


def rename_model_class(content: str, old_name: str, new_name: str, base_class: str,
                       notes: Optional[List[str]] = None) -> str:
    """``class <old> extends CI_Model`` -> ``class <new> extends <base>``.

    Both the class name and the CI_Model parent have to match; anything else
    is left as written.
    """
    rule = RewriteRule(
        'model_class',
        r'class\s+' + re.escape(old_name) + r'\s+extends\s+CI_Model\b',
        lambda m: f'class {new_name} extends {base_class}',
    )
    return rule.apply(content, notes)


def add_model_properties(content: str, class_name: str, base_class: str,
                         notes: Optional[List[str]] = None) -> str:
    """Inject the default CI4 model properties right after the class brace."""
    rule = RewriteRule(
        'model_properties',
        r'(class\s+' + re.escape(class_name) + r'\s+extends\s+' + re.escape(base_class) + r'\s*\{)',
        lambda m: m.group(1) + MODEL_PROPERTIES,
    )
    return rule.apply(content, notes)


ROUTE_RULE = RewriteRule(
    'route',
    r"\$route\['([^']+)'\]\s*=\s*'([^']+)';",
    r"$routes->add('\1', '\2');",
)


def convert_routes(content: str, notes: Optional[List[str]] = None) -> str:
    """``$route['<p>'] = '<t>';`` -> ``$routes->add('<p>', '<t>');``."""
    return ROUTE_RULE.apply(content, notes)


CONFIG_ASSIGNMENT_PATTERN = re.compile(r"\$config\['([^']+)'\]\s*=\s*([^;\n]+);")


def extract_config_values(content: str) -> Dict[str, str]:
    """Collect single-line ``$config['key'] = value;`` assignments.

    Values are raw PHP source text, never evaluated. Later assignments to the
    same key win. Multi-line values and nested keys are not recognised.
    """
    values = {}
    for match in CONFIG_ASSIGNMENT_PATTERN.finditer(content):
        values[match.group(1)] = match.group(2).strip()
    return values


def convert_config_to_class(content: str, class_name: str, namespace: str = 'Config') -> str:
    """Render a legacy ``$config`` array file as a CI4 BaseConfig class."""
    content = strip_access_guard(content, loose=True)

    lines = [
        '<?php',
        '',
        f'namespace {namespace};',
        '',
        'use CodeIgniter\\Config\\BaseConfig;',
        '',
        f'class {class_name} extends BaseConfig',
        '{',
    ]
    for key, value in extract_config_values(content).items():
        lines.append(f'    public ${key} = {value};')
    lines.append('}')
    return '\n'.join(lines) + '\n'


FORM_ERROR_RULE = RewriteRule(
    'form_error',
    r'<\?(?:php\s+echo\s+|=\s*)form_error\([\'"](.+?)[\'"]\)\s*;?\s*\?>',
    r"<?= validation_show_error('\1') ?>",
)

ECHO_HELPERS = ['form_open', 'form_close', 'form_input', 'site_url', 'base_url', 'current_url']


def update_view_syntax(content: str, notes: Optional[List[str]] = None) -> str:
    """Long-form ``<?php echo`` tags -> short ``<?=`` tags.

    ``form_error()`` becomes ``validation_show_error()``; it is handled before
    the generic echo pass, which would otherwise hide it.
    """
    content = FORM_ERROR_RULE.apply(content, notes)
    for helper in ECHO_HELPERS:
        content = content.replace('<?php echo ' + helper, '<?= ' + helper)
    content = content.replace('<?php echo ', '<?= ')
    return content
