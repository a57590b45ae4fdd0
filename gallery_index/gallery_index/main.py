import click

from .cli.cache import cache
from .cli.search import search
from .cli.show import show
from .cli.suggest import suggest
from .cli.url import file_url, url


@click.group()
def cli():
    """gallery-index: filter, page and route galleries from the remote catalog."""
    pass


cli.add_command(search)
cli.add_command(show)
cli.add_command(url)
cli.add_command(file_url)
cli.add_command(suggest)
cli.add_command(cache)


if __name__ == "__main__":
    cli()
