from click.testing import CliRunner
from pawnvault.cli.commands import cli

KEY = 'password123456'


def run(tmp_path, args, input=None):
    return CliRunner().invoke(cli, ['--root', str(tmp_path)] + args, input=input)


def test_cli_help():
    r = CliRunner().invoke(cli, ['--help'])
    assert r.exit_code == 0
    for cmd in ('create', 'list', 'entries', 'passwd', 'recover'):
        assert cmd in r.output


def test_cli_create_and_list(tmp_path):
    r = run(tmp_path, ['create', 'bank'], input=f'{KEY}\n{KEY}\n')
    assert r.exit_code == 0
    assert 'Vault bank created' in r.output
    lst = run(tmp_path, ['list'])
    assert lst.exit_code == 0
    assert 'bank' in lst.output


def test_cli_create_validation_error(tmp_path):
    r = run(tmp_path, ['create', 'bank'], input='short\nshort\n')
    assert r.exit_code == 1
    assert 'Error: Master key must be at least 12 characters long' in r.output
    mismatch = run(tmp_path, ['create', 'bank'], input=f'{KEY}\n{KEY}x\n')
    assert 'Error: Confirm master key does not match' in mismatch.output


def test_cli_entries_flow(tmp_path):
    run(tmp_path, ['create', 'bank'], input=f'{KEY}\n{KEY}\n')
    add = run(tmp_path, ['add', 'bank', '--notes', 'checking'], input=f'{KEY}\n')
    assert add.exit_code == 0
    assert '1: checking' in add.output
    shown = run(tmp_path, ['entries', 'bank', '--show-secrets', '--masterkey', KEY])
    assert '1: checking  [' in shown.output
    wrong = run(tmp_path, ['entries', 'bank'], input='wrongwrongwrong\n')
    assert wrong.exit_code == 1
    assert 'Error: Incorrect master key' in wrong.output
    upd = run(tmp_path, ['update', 'bank', '1', '--secret', 's3cret', '--notes', 'savings', '--show-secrets'],
              input=f'{KEY}\n')
    assert '1: savings  [s3cret]' in upd.output
    rm = run(tmp_path, ['remove', 'bank', '1'], input=f'{KEY}\n')
    assert '(no entries)' in rm.output


def test_cli_rename_passwd_delete(tmp_path):
    run(tmp_path, ['create', 'a'], input=f'{KEY}\n{KEY}\n')
    r = run(tmp_path, ['rename', 'a', 'b'])
    assert 'renamed to b' in r.output
    missing = run(tmp_path, ['rename', 'a', 'c'])
    assert "Error: Vault 'a' does not exist" in missing.output
    new = 'brand-new-key-1'
    pw = run(tmp_path, ['passwd', 'b'], input=f'{KEY}\n{new}\n{new}\n')
    assert pw.exit_code == 0
    assert 'Master key updated' in pw.output
    assert run(tmp_path, ['entries', 'b', '--masterkey', new]).exit_code == 0
    d = run(tmp_path, ['delete', 'b', '--yes'])
    assert d.exit_code == 0
    assert '(no vaults)' in run(tmp_path, ['list']).output


def test_cli_recover_and_backup(tmp_path):
    run(tmp_path, ['create', 'v'], input=f'{KEY}\n{KEY}\n')
    assert 'Nothing to recover' in run(tmp_path, ['recover']).output
    (tmp_path / 'ghost.meta').write_text('{}')
    assert 'Removed orphaned metadata ghost.meta' in run(tmp_path, ['recover']).output
    b = run(tmp_path, ['backup', 'v'])
    assert b.exit_code == 0
    assert 'Backup written' in b.output
    assert any((tmp_path / 'backups').iterdir())


def test_cli_root_from_env(monkeypatch, tmp_path):
    root = tmp_path / 'store'
    monkeypatch.setenv('PAWN_VAULT_DIR', str(root))
    r = CliRunner().invoke(cli, ['create', 'v'], input=f'{KEY}\n{KEY}\n')
    assert r.exit_code == 0
    assert (root / 'v.pwd').exists()
