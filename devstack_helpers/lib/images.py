from __future__ import annotations

import gzip
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..context import StackCtx
from .command import run_cmd
from .fields import get_field

logger = logging.getLogger(__name__)

DISK_FORMATS = {"qcow2", "raw", "vdi", "vmdk", "vpc"}


class UnsupportedImageError(RuntimeError):
    pass


@dataclass(frozen=True)
class ImagePlan:
    name: str
    image: Path
    disk_format: str
    container_format: str
    kernel: Optional[Path] = None
    ramdisk: Optional[Path] = None


def _first_file(xdir: Path, patterns: Sequence[str]) -> Optional[Path]:
    for pattern in patterns:
        for p in sorted(xdir.glob(pattern)):
            if p.is_file():
                return p
    return None


def _strip_suffix(name: str, suffix: str) -> str:
    return name[: -len(suffix)] if name.endswith(suffix) else name


def _glance(ctx: StackCtx, token: str, image: Path, name: str, container: str, disk: str, *extra: str) -> str:
    argv = [
        "glance",
        "--os-auth-token",
        token,
        "--os-image-url",
        f"http://{ctx.cfg.glance_hostport}",
        "image-create",
        "--name",
        name,
        "--public",
        "--container-format",
        container,
        "--disk-format",
        disk,
        *extra,
    ]
    if ctx.dry_run:
        return run_cmd(argv, dry_run=True).stdout
    with image.open("rb") as f:
        return run_cmd(argv, stdin=f).stdout


def _image_id(output: str) -> Optional[str]:
    for line in output.splitlines():
        if " id " in line:
            return get_field(line, 2)
    return None


def _qemu_format(ctx: StackCtx, image: Path) -> str:
    r = run_cmd(["qemu-img", "info", str(image)], check=False, dry_run=ctx.dry_run)
    for line in (r.stdout or "").splitlines():
        if line.startswith("file format"):
            fmt = line.split(":", 1)[-1].strip()
            return fmt if fmt in DISK_FORMATS else "raw"
    return "raw"


def _extract_tarball(ctx: StackCtx, tarball: Path, fname: str) -> ImagePlan:
    name = _strip_suffix(_strip_suffix(fname, ".tar.gz"), ".tgz")
    xdir = Path(ctx.cfg.files_dir) / "images" / name
    if not ctx.dry_run:
        shutil.rmtree(xdir, ignore_errors=True)
        xdir.mkdir(parents=True)
    run_cmd(["tar", "-zxf", str(tarball), "-C", str(xdir)], dry_run=ctx.dry_run)

    image = _first_file(xdir, ["*.img", "ami-*/image"])
    if image is None and ctx.dry_run:
        image = xdir / f"{name}.img"
    if image is None:
        raise UnsupportedImageError(f"No disk image found in {fname}")
    return ImagePlan(
        name=name or image.stem,
        image=image,
        disk_format="ami",
        container_format="ami",
        kernel=_first_file(xdir, ["*-vmlinuz*", "aki-*/image"]),
        ramdisk=_first_file(xdir, ["*-initrd*", "ari-*/image"]),
    )


def _gunzip(ctx: StackCtx, src: Path, name: str) -> Path:
    out = Path(ctx.cfg.files_dir) / "images" / f"{name}.img"
    if ctx.dry_run:
        logger.info("Would decompress %s -> %s", str(src), str(out))
        return out
    out.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(str(src), "rb") as fin, out.open("wb") as fout:
        shutil.copyfileobj(fin, fout)
    return out


def plan_image(ctx: StackCtx, path: Path) -> ImagePlan:
    """Work out how a downloaded file should be handed to glance."""

    fname = path.name
    if fname.endswith((".tar.gz", ".tgz")):
        return _extract_tarball(ctx, path, fname)
    if fname.endswith(".img"):
        return ImagePlan(
            name=_strip_suffix(fname, ".img"),
            image=path,
            disk_format=_qemu_format(ctx, path),
            container_format="bare",
        )
    if fname.endswith(".img.gz"):
        name = _strip_suffix(fname, ".img.gz")
        return ImagePlan(name=name, image=_gunzip(ctx, path, name), disk_format="raw", container_format="bare")
    if fname.endswith(".qcow2"):
        return ImagePlan(name=_strip_suffix(fname, ".qcow2"), image=path, disk_format="qcow2", container_format="bare")
    raise UnsupportedImageError(f"Do not know what to do with {fname}")


def download_image(ctx: StackCtx, image_url: str) -> Optional[Path]:
    files = Path(ctx.cfg.files_dir)
    target = files / Path(image_url).name
    if target.is_file() and target.stat().st_size > 0:
        return target
    if not ctx.dry_run:
        (files / "images").mkdir(parents=True, exist_ok=True)
    r = run_cmd(["wget", "-c", image_url, "-O", str(target)], check=False, dry_run=ctx.dry_run)
    if r.returncode != 0:
        logger.error("Not found: %s", image_url)
        return None
    return target


def upload_image(ctx: StackCtx, image_url: str, token: str) -> List[str]:
    """Download an image and register it with glance.

    Returns the glance ids that could be read back from the client output.
    """

    path = download_image(ctx, image_url)
    if path is None:
        return []

    # OpenVZ templates are uploaded as the tarball itself.
    if "openvz" in image_url:
        name = _strip_suffix(path.name, ".tar.gz")
        out = _glance(ctx, token, path, name, "ami", "ami")
        return [i for i in [_image_id(out)] if i]

    plan = plan_image(ctx, path)
    if plan.container_format == "bare":
        out = _glance(ctx, token, plan.image, plan.name, "bare", plan.disk_format)
        return [i for i in [_image_id(out)] if i]

    ids: List[str] = []
    props: List[str] = []
    if plan.kernel is not None:
        kernel_id = _image_id(_glance(ctx, token, plan.kernel, f"{plan.name}-kernel", "aki", "aki"))
        if kernel_id:
            ids.append(kernel_id)
            props += ["--property", f"kernel_id={kernel_id}"]
    if plan.ramdisk is not None:
        ramdisk_id = _image_id(_glance(ctx, token, plan.ramdisk, f"{plan.name}-ramdisk", "ari", "ari"))
        if ramdisk_id:
            ids.append(ramdisk_id)
            props += ["--property", f"ramdisk_id={ramdisk_id}"]

    image_id = _image_id(_glance(ctx, token, plan.image, _strip_suffix(plan.name, ".img"), "ami", "ami", *props))
    if image_id:
        ids.append(image_id)
    logger.info("Uploaded %s as %s", image_url, ",".join(ids) or "(unknown id)")
    return ids
