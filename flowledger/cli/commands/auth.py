"""Sign-in commands."""

import click

from flowledger.api import auth as auth_api
from flowledger.cli.colors import console, print_info, print_success
from flowledger.cli.context import CliContext, pass_context


@click.command()
@click.argument("username")
@click.password_option(confirmation_prompt=False)
@pass_context
def login(ctx: CliContext, username: str, password: str):
    """Sign in and store the access token.

    Examples:
        flowledger login alice
    """
    ctx.run(lambda client: auth_api.login(client, ctx.session, username, password))
    print_success(f"Signed in as {username}")


@click.command()
@pass_context
def logout(ctx: CliContext):
    """Forget the stored session."""
    auth_api.logout(ctx.session)
    print_success("Signed out")


@click.command()
@pass_context
def whoami(ctx: CliContext):
    """Show the signed-in user."""
    ctx.session.sync()
    if not ctx.session.is_authenticated:
        print_info("Not signed in")
        return

    me = ctx.run(auth_api.get_me)
    for key, value in sorted(me.items()):
        console.print(f"[dim]{key}:[/dim] {value}")
