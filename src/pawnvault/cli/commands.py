"""CLI commands implemented with click.

This is the outer command layer: it resolves the storage root, prompts
for master keys and turns engine errors into stable messages via
``describe``. All vault logic lives in ``pawnvault.lib``.
"""
from __future__ import annotations
import functools, logging, click
from pathlib import Path
from pawnvault.config import settings
from pawnvault.lib.errors import VaultError, describe
from pawnvault.lib.registry import VaultRegistry

log = logging.getLogger(__name__)


def handle_errors(fn):
	"""Print engine and storage errors as ``Error: ...`` and exit 1."""
	@functools.wraps(fn)
	def wrapper(*args, **kwargs):
		try:
			return fn(*args, **kwargs)
		except (VaultError, OSError) as e:
			log.debug('%s failed: %s', fn.__name__, type(e).__name__)
			click.echo(f'Error: {describe(e)}')
			raise SystemExit(1)
	return wrapper


def _print_entries(entries, show_secrets: bool):
	if not entries:
		click.echo('(no entries)')
	for e in entries:
		line = f'{e.id}: {e.notes}'
		if show_secrets:
			line += f'  [{e.secret}]'
		click.echo(line)


@click.group()
@click.option('--root', type=click.Path(file_okay=False, path_type=Path), envvar=settings.STORAGE_ENV_VAR,
	default=None, help='Directory holding the vault files.')
@click.option('--verbose', '-v', is_flag=True, help='Log at DEBUG level.')
@click.pass_context
def cli(ctx, root, verbose):
	"""pawn: named, passphrase-protected vaults of generated secrets."""
	logging.basicConfig(level=logging.DEBUG if verbose else settings.LOG_LEVEL,
		format='%(asctime)s %(levelname)s %(name)s: %(message)s')
	root = root or settings.default_storage_root()
	root.mkdir(parents=True, exist_ok=True)
	ctx.obj = VaultRegistry(root)


@cli.command()
@click.argument('name')
@click.option('--masterkey', prompt=True, hide_input=True)
@click.option('--confirm-masterkey', prompt='Confirm masterkey', hide_input=True)
@click.pass_obj
@handle_errors
def create(registry, name, masterkey, confirm_masterkey):
	"""Create an empty vault NAME."""
	vault = registry.create(name, masterkey, confirm_masterkey)
	click.echo(f'Vault {vault.name} created.')


@cli.command('list')
@click.pass_obj
@handle_errors
def list_vaults(registry):
	"""List vaults, newest first."""
	vaults = registry.list()
	if not vaults:
		click.echo('(no vaults)')
	for v in vaults:
		click.echo(f"{v.name}  created {v.metadata.created_at:%Y-%m-%d %H:%M:%S}  last accessed {v.metadata.last_accessed:%Y-%m-%d}")


@cli.command()
@click.argument('name')
@click.confirmation_option(prompt='Delete this vault permanently?')
@click.pass_obj
@handle_errors
def delete(registry, name):
	"""Delete vault NAME."""
	registry.delete(name)
	click.echo(f'Vault {name} deleted.')


@cli.command()
@click.argument('name')
@click.argument('new_name')
@click.pass_obj
@handle_errors
def rename(registry, name, new_name):
	"""Rename vault NAME to NEW_NAME."""
	vault = registry.rename(name, new_name)
	click.echo(f'Vault {name} renamed to {vault.name}.')


@cli.command()
@click.argument('name')
@click.option('--masterkey', prompt='Current masterkey', hide_input=True)
@click.option('--new-masterkey', prompt=True, hide_input=True)
@click.option('--confirm-masterkey', prompt='Confirm new masterkey', hide_input=True)
@click.pass_obj
@handle_errors
def passwd(registry, name, masterkey, new_masterkey, confirm_masterkey):
	"""Change the master key of vault NAME."""
	registry.update_masterkey(name, masterkey, new_masterkey, confirm_masterkey)
	click.echo('Master key updated.')


@cli.command()
@click.argument('name')
@click.option('--masterkey', prompt=True, hide_input=True)
@click.option('--show-secrets', is_flag=True, help='Print secrets next to notes.')
@click.pass_obj
@handle_errors
def entries(registry, name, masterkey, show_secrets):
	"""List entries of vault NAME."""
	_print_entries(registry.list_entries(name, masterkey), show_secrets)


@cli.command()
@click.argument('name')
@click.option('--masterkey', prompt=True, hide_input=True)
@click.option('--notes', prompt=True, default='')
@click.option('--secret', default=None, help='Store this secret instead of generating one.')
@click.option('--show-secrets', is_flag=True)
@click.pass_obj
@handle_errors
def add(registry, name, masterkey, notes, secret, show_secrets):
	"""Add an entry to vault NAME (secret generated unless given)."""
	_print_entries(registry.add_entry(name, masterkey, secret=secret, notes=notes), show_secrets)


@cli.command()
@click.argument('name')
@click.argument('entry_id', type=int)
@click.option('--masterkey', prompt=True, hide_input=True)
@click.option('--secret', prompt=True, hide_input=True)
@click.option('--notes', prompt=True, default='')
@click.option('--show-secrets', is_flag=True)
@click.pass_obj
@handle_errors
def update(registry, name, entry_id, masterkey, secret, notes, show_secrets):
	"""Replace secret and notes of entry ENTRY_ID."""
	_print_entries(registry.update_entry(name, masterkey, entry_id, secret, notes), show_secrets)


@cli.command()
@click.argument('name')
@click.argument('entry_id', type=int)
@click.option('--masterkey', prompt=True, hide_input=True)
@click.option('--show-secrets', is_flag=True)
@click.pass_obj
@handle_errors
def remove(registry, name, entry_id, masterkey, show_secrets):
	"""Remove entry ENTRY_ID from vault NAME."""
	_print_entries(registry.delete_entry(name, masterkey, entry_id), show_secrets)


@cli.command()
@click.pass_obj
@handle_errors
def recover(registry):
	"""Clean up files left behind by interrupted operations."""
	report = registry.recover()
	if report.clean:
		click.echo('Nothing to recover.')
		return
	for p in report.removed_temp_files:
		click.echo(f'Removed temp file {p.name}')
	for p in report.removed_orphan_metadata:
		click.echo(f'Removed orphaned metadata {p.name}')


@cli.command()
@click.argument('name')
@click.option('--dest', type=click.Path(file_okay=False, path_type=Path), default=None,
	help='Destination directory for backups.')
@click.pass_obj
@handle_errors
def backup(registry, name, dest):
	"""Copy vault NAME's files into a backup directory."""
	target = registry.backup(name, dest or registry.root / settings.BACKUP_DIRNAME)
	click.echo(f'Backup written: {target}')
