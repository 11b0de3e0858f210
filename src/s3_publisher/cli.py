"""Command-line interface for s3-publisher.

Commands:
    - publish: Upload a local directory tree to a bucket
    - list: List objects under an s3://bucket/prefix path

S3 connection options are shared by both commands; anything not given on
the command line falls back to the S3_PUBLISHER_* environment settings and
the default AWS credential chain.
"""

from typing import Annotated, Optional

import typer

from . import __version__
from .objectstorage import S3ClientConfig, S3ObjectStore, list_s3_objects
from .publisher import Publisher, UploadOutcome

app = typer.Typer(
    name="s3-publisher",
    help="Publish local directory trees to S3-compatible object storage.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        typer.echo(f"s3-publisher {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, help="Show version."),
    ] = None,
) -> None:
    """
    S3-Publisher: upload directory trees to S3 with content types set.
    """
    pass


AccessKeyIdOption = Annotated[
    Optional[str], typer.Option("--access-key-id", help="AWS access key ID")
]
SecretAccessKeyOption = Annotated[
    Optional[str], typer.Option("--secret-access-key", help="AWS secret access key")
]
SessionTokenOption = Annotated[
    Optional[str], typer.Option("--session-token", help="AWS session token")
]
RegionOption = Annotated[
    Optional[str], typer.Option("--region", help="AWS region name")
]
EndpointUrlOption = Annotated[
    Optional[str], typer.Option("--endpoint-url", help="Custom S3 endpoint URL")
]
AwsProfileOption = Annotated[
    Optional[str], typer.Option("--aws-profile", help="AWS CLI profile name")
]
TimeoutOption = Annotated[
    Optional[float],
    typer.Option("--timeout", help="Network read timeout in seconds"),
]


def _create_client_config(
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    session_token: Optional[str] = None,
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    aws_profile: Optional[str] = None,
    timeout: Optional[float] = None,
) -> S3ClientConfig:
    """Create S3 client configuration, leaving unset options to settings."""
    kwargs = {
        "access_key_id": access_key_id,
        "secret_access_key": secret_access_key,
        "session_token": session_token,
        "aws_profile": aws_profile,
    }
    if region_name:
        kwargs["region_name"] = region_name
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    if timeout is not None:
        kwargs["read_timeout"] = timeout

    return S3ClientConfig(**kwargs)


def _format_outcome(outcome: UploadOutcome) -> str:
    if outcome.result is not None:
        return (
            f"✓ {outcome.local_path} -> {outcome.result.s3_uri} "
            f"({outcome.result.content_type})"
        )
    return f"✗ {outcome.local_path}: {outcome.error}"


@app.command("publish")
def publish_cmd(
    source: Annotated[str, typer.Argument(help="Local directory to publish")],
    bucket: Annotated[str, typer.Option("--bucket", "-b", help="Target bucket")],
    key_prefix: Annotated[
        str, typer.Option("--key-prefix", "-p", help="Prefix for every object key")
    ] = "",
    exclude: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exclude",
            "-x",
            help="File extension to skip, with leading dot (repeatable)",
        ),
    ] = None,
    preserve_source_dir: Annotated[
        bool,
        typer.Option(
            "--preserve-source-dir",
            help="Mirror the full source directory path into object keys",
        ),
    ] = False,
    workers: Annotated[
        Optional[int],
        typer.Option("--workers", "-w", min=1, help="Number of upload workers"),
    ] = None,
    access_key_id: AccessKeyIdOption = None,
    secret_access_key: SecretAccessKeyOption = None,
    session_token: SessionTokenOption = None,
    region_name: RegionOption = None,
    endpoint_url: EndpointUrlOption = None,
    aws_profile: AwsProfileOption = None,
    timeout: TimeoutOption = None,
) -> None:
    """
    Upload every file under SOURCE to a bucket.

    Examples:
        s3-publisher publish ./build --bucket my-site --key-prefix docs \
            --exclude .map
        s3-publisher publish ./site --bucket my-site --preserve-source-dir \
            --endpoint-url http://localhost:9000
    """
    try:
        client_config = _create_client_config(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
            region_name=region_name,
            endpoint_url=endpoint_url,
            aws_profile=aws_profile,
            timeout=timeout,
        )
        publisher = Publisher.create(
            {
                "bucket": bucket,
                "key_prefix": key_prefix,
                "exclusions": exclude or [],
                "preserve_source_dir": preserve_source_dir,
            },
            max_workers=workers,
            client_config=client_config,
        )

        report = publisher.publish(
            source, on_progress=lambda outcome: typer.echo(_format_outcome(outcome))
        )

    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(
        f"Uploaded {len(report.uploaded)} files, {len(report.failed)} failed."
    )
    if not report.success:
        raise typer.Exit(1)


@app.command("list")
def list_cmd(
    path: Annotated[str, typer.Argument(help="S3 path: s3://bucket/prefix")],
    access_key_id: AccessKeyIdOption = None,
    secret_access_key: SecretAccessKeyOption = None,
    session_token: SessionTokenOption = None,
    region_name: RegionOption = None,
    endpoint_url: EndpointUrlOption = None,
    aws_profile: AwsProfileOption = None,
    timeout: TimeoutOption = None,
) -> None:
    """
    List objects under an S3 path, e.g. to check what was published.

    Examples:
        s3-publisher list s3://my-site/docs --aws-profile myprofile
    """
    try:
        client_config = _create_client_config(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
            region_name=region_name,
            endpoint_url=endpoint_url,
            aws_profile=aws_profile,
            timeout=timeout,
        )
        objects = list_s3_objects(path, S3ObjectStore(client_config))

    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if objects:
        typer.echo(f"Found {len(objects)} objects:")
        for item in objects:
            typer.echo(f"  {item}")
    else:
        typer.echo("No objects found.")


if __name__ == "__main__":
    app()
