"""CLI commands for inspecting JPL binary ephemeris files."""

import json
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

import click

from ..jpl import Body, Ephemeris, EphemerisError, EphemerisFormat, Nutations
from ..space_time.julian import TwoPartDate


def parse_epoch(value: str) -> TwoPartDate:
    """Parse a Julian date or an ISO datetime into a TwoPartDate.

    ISO datetimes without a timezone are taken as UTC.

    Raises:
        click.BadParameter: If the value is neither
    """
    try:
        return TwoPartDate.from_julian(float(value.strip("' ")))
    except ValueError:
        pass

    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date: {value}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return TwoPartDate.from_datetime(dt)


def parse_body(value: str) -> Body:
    try:
        return Body.from_name(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _open(path: str, ksize: Optional[int], km: bool = False) -> Ephemeris:
    fmt = None
    if ksize is not None:
        fmt = EphemerisFormat(de_number=0, ksize=ksize)
    try:
        return Ephemeris.open(path, fmt=fmt, km=km)
    except EphemerisError as e:
        raise click.ClickException(str(e))


ksize_option = click.option(
    "--ksize",
    type=int,
    help="Record length in 4-byte words, for files whose DE number is not known.",
)


@click.command()
@click.argument("path", type=click.Path(dir_okay=False))
@ksize_option
def info(path: str, ksize: Optional[int]) -> None:
    """Show the title, DE number and time span of an ephemeris file."""
    with _open(path, ksize) as eph:
        start, stop, step = eph.time_span
        for title in eph.header.titles:
            if title:
                click.echo(title)
        click.echo(f"DE number: {eph.de_number}")
        click.echo(f"Start JD:  {start}")
        click.echo(f"Stop JD:   {stop}")
        click.echo(f"Step:      {step} days")
        click.echo(f"AU:        {eph.au} km")
        click.echo(f"EMRAT:     {eph.emrat}")
        click.echo(f"Constants: {eph.header.ncon}")


@click.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.argument("names", nargs=-1)
@ksize_option
def constants(path: str, names: Tuple[str, ...], ksize: Optional[int]) -> None:
    """List constants stored in an ephemeris file, optionally only NAMES."""
    with _open(path, ksize) as eph:
        if names:
            for name in names:
                try:
                    click.echo(f"{name.upper():<6} {eph.constant(name)!r}")
                except KeyError:
                    raise click.ClickException(f"No constant named {name}")
            return

        all_names, values, _ = eph.constants()
        for name, value in zip(all_names, values):
            click.echo(f"{name:<6} {value!r}")


@click.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.argument("epoch")
@click.argument("target")
@click.option(
    "--center",
    default="ssb",
    show_default=True,
    help="Center body (name or number).",
)
@click.option("--km", is_flag=True, help="Report km and km/s instead of AU and AU/day.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@ksize_option
def state(
    path: str,
    epoch: str,
    target: str,
    center: str,
    km: bool,
    as_json: bool,
    ksize: Optional[int],
) -> None:
    """Print the state of TARGET at EPOCH (Julian date or ISO datetime)."""
    date = parse_epoch(epoch)
    target_body = parse_body(target)
    center_body = parse_body(center)

    with _open(path, ksize, km=km) as eph:
        try:
            result = eph.state(date, target_body, center_body)
        except (EphemerisError, ValueError) as e:
            raise click.ClickException(str(e))

    data: dict[str, Union[str, float, list[float]]] = {
        "julian_date": date.jd,
        "target": target_body.name,
        "center": center_body.name,
    }
    if isinstance(result, Nutations):
        data.update(result._asdict())
    else:
        data["position"] = [float(v) for v in result.position]
        data["velocity"] = [float(v) for v in result.velocity]

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo(f"JD {date.jd:.9f} {target_body.name} from {center_body.name}")
    if isinstance(result, Nutations):
        for key, value in result._asdict().items():
            click.echo(f"  {key:<9} {value: .15e}")
    else:
        x, y, z = result.position
        vx, vy, vz = result.velocity
        click.echo(f"  position {x: .15e} {y: .15e} {z: .15e}")
        click.echo(f"  velocity {vx: .15e} {vy: .15e} {vz: .15e}")
