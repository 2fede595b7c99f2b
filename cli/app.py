"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.
클러스터 없이 한 번 수집하거나(scan), 클러스터의 CloudInventory 객체를 대상으로
수집 패스를 실행하거나(reconcile), 저장된 리포트를 마크다운으로 변환합니다(format).

명령어 구조:
    cloudinv --version
    cloudinv scan aws -r ec2 -r s3 [--tag-filter Environment=prod] [--region us-east-1]
    cloudinv scan kubernetes [-n default] [--selector app=web] [--kubeconfig ~/.kube/config]
    cloudinv reconcile NAMESPACE NAME [--loop] [--max-passes N]
    cloudinv format report.yaml

출력:
    - 마크다운 리포트는 stdout (또는 -o 파일)
    - 진행 상황, 요약 테이블, 오류는 stderr (rich)

Usage:
    $ cloudinv scan aws -r ec2 -r rds -o inventory.md
    $ python -m cli.app format report.json
"""

from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path

import click
import yaml
from click import Context

from cli.ui import print_error, print_info, print_pass_result, print_success, print_summary_table
from core.config import InventorySettings, LogConfig, setup_logging
from core.exceptions import format_error_for_user
from core.inventory import (
    CloudInventory,
    InventoryOrchestrator,
    InventoryReport,
    KubernetesInventoryStore,
    MemoryInventoryStore,
    ReconcileResult,
    build_inventory_markdown,
)
from core.inventory.types import (
    AWSInventorySpec,
    CloudInventorySpec,
    InventoryMode,
    KubernetesInventorySpec,
    ObjectMeta,
    SecretKeySelector,
)

logger = logging.getLogger(__name__)

# scan 명령에서 만드는 임시 인벤토리 위치
LOCAL_NAMESPACE = "local"
KUBECONFIG_SECRET = "cli-kubeconfig"


def get_version() -> str:
    """버전 문자열 반환 (프로젝트 루트의 version.txt)"""
    version_file = Path(__file__).resolve().parent.parent / "version.txt"
    try:
        return version_file.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug("Failed to read version file: %s", e)
    return "0.0.1"


VERSION = get_version()


@click.group()
@click.version_option(VERSION, prog_name="cloudinv")
@click.option("--debug", is_flag=True, help="DEBUG 로그 출력 (실패 로그에 traceback 포함)")
@click.pass_context
def cli(ctx: Context, debug: bool) -> None:
    """cloudinv - 클라우드 인벤토리 수집/리포트 CLI"""
    log_config = LogConfig.from_env()
    if debug:
        log_config.level = "DEBUG"
    setup_logging(log_config)

    ctx.ensure_object(dict)
    settings = InventorySettings.from_env()
    if debug:
        settings = dataclasses.replace(settings, debug=True)
    ctx.obj["settings"] = settings


# =============================================================================
# 일회성 수집 (메모리 저장소)
# =============================================================================


def _run_local_scan(
    settings: InventorySettings,
    inventory: CloudInventory,
    store: MemoryInventoryStore,
    output: str | None,
) -> None:
    """메모리 저장소에서 패스 한 번 실행 후 리포트 출력"""
    store.add_inventory(inventory)
    orchestrator = InventoryOrchestrator(store, settings)
    result = orchestrator.reconcile(inventory.namespace, inventory.name)

    if not result.success:
        print_error(result.message or "수집 실패")
        raise SystemExit(1)

    print_summary_table(result.message, result.summary)

    data = store.reports[(inventory.namespace, result.report_name)]
    markdown = build_inventory_markdown(InventoryReport.from_dict(data))
    _write_markdown(markdown, output)


def _write_markdown(markdown: str, output: str | None) -> None:
    if output:
        Path(output).write_text(markdown, encoding="utf-8")
        print_success(f"리포트 저장: {output}")
    else:
        click.echo(markdown, nl=False)


@cli.group("scan")
def scan_cmd() -> None:
    """클러스터 없이 한 번 수집하고 리포트 출력

    \b
    Examples:
        cloudinv scan aws -r ec2 -r s3
        cloudinv scan kubernetes -n default -n kube-system
    """


@scan_cmd.command("aws")
@click.option("-r", "--resource", "resources", multiple=True, required=True, help="리소스 종류 (다중 가능)")
@click.option("--tag-filter", default="", help="태그 필터 (Key=Value)")
@click.option("--region", default="", help="리전 (기본: 환경변수 또는 us-east-1)")
@click.option("--assume-role-arn", default="", help="AssumeRole 대상 역할 ARN")
@click.option("--name", default="cli", show_default=True, help="인벤토리 이름 (리포트 제목)")
@click.option("-o", "--output", default=None, help="마크다운 출력 파일 경로")
@click.pass_context
def scan_aws(
    ctx: Context,
    resources: tuple[str, ...],
    tag_filter: str,
    region: str,
    assume_role_arn: str,
    name: str,
    output: str | None,
) -> None:
    """실행 환경의 AWS 자격 증명으로 리소스 수집"""
    inventory = CloudInventory(
        metadata=ObjectMeta(name=name, namespace=LOCAL_NAMESPACE),
        spec=CloudInventorySpec(
            mode=InventoryMode.AWS.value,
            aws=AWSInventorySpec(
                resources=list(resources),
                region=region,
                tag_filter=tag_filter,
                assume_role_arn=assume_role_arn,
            ),
        ),
    )
    print_info(f"AWS 수집 시작: {', '.join(resources)}")
    _run_local_scan(ctx.obj["settings"], inventory, MemoryInventoryStore(), output)


@scan_cmd.command("kubernetes")
@click.option("-n", "--namespace", "namespaces", multiple=True, help="대상 네임스페이스 (기본: 전체)")
@click.option("--selector", default="", help="Pod 라벨 셀렉터")
@click.option(
    "--kubeconfig",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="kubeconfig 파일 (기본: in-cluster → ~/.kube/config)",
)
@click.option("--name", default="cli", show_default=True, help="인벤토리 이름 (리포트 제목)")
@click.option("-o", "--output", default=None, help="마크다운 출력 파일 경로")
@click.pass_context
def scan_kubernetes(
    ctx: Context,
    namespaces: tuple[str, ...],
    selector: str,
    kubeconfig: str | None,
    name: str,
    output: str | None,
) -> None:
    """클러스터에서 실행 중인 컨테이너 이미지 수집"""
    store = MemoryInventoryStore()
    secret_ref = None
    if kubeconfig:
        store.add_secret(LOCAL_NAMESPACE, KUBECONFIG_SECRET, {"kubeconfig": Path(kubeconfig).read_text(encoding="utf-8")})
        secret_ref = SecretKeySelector(name=KUBECONFIG_SECRET)

    inventory = CloudInventory(
        metadata=ObjectMeta(name=name, namespace=LOCAL_NAMESPACE),
        spec=CloudInventorySpec(
            mode=InventoryMode.KUBERNETES.value,
            kubernetes=KubernetesInventorySpec(
                namespaces=list(namespaces),
                label_selector=selector,
                kubeconfig_secret_ref=secret_ref,
            ),
        ),
    )
    print_info("Kubernetes 이미지 수집 시작")
    _run_local_scan(ctx.obj["settings"], inventory, store, output)


# =============================================================================
# 클러스터 CRD 대상 패스
# =============================================================================


def _load_cluster_store() -> KubernetesInventoryStore:
    """in-cluster 설정 우선, 실패하면 로컬 kubeconfig"""
    from kubernetes import config as k8s_config
    from kubernetes.config.config_exception import ConfigException

    try:
        k8s_config.load_incluster_config()
    except ConfigException:
        k8s_config.load_kube_config()
    return KubernetesInventoryStore()


@cli.command("reconcile")
@click.argument("namespace")
@click.argument("name")
@click.option("--loop", is_flag=True, help="재실행 간격만큼 대기하며 반복 실행")
@click.option("--max-passes", type=click.IntRange(min=1), default=None, help="반복 실행 최대 횟수")
@click.pass_context
def reconcile_cmd(ctx: Context, namespace: str, name: str, loop: bool, max_passes: int | None) -> None:
    """클러스터의 CloudInventory 객체로 수집 패스 실행

    \b
    Examples:
        cloudinv reconcile default prod-inventory
        cloudinv reconcile default prod-inventory --loop --max-passes 10
    """
    try:
        store = _load_cluster_store()
    except Exception as e:
        print_error(f"클러스터 연결 실패: {format_error_for_user(e)}")
        raise SystemExit(1) from e

    orchestrator = InventoryOrchestrator(store, ctx.obj["settings"])
    result = _reconcile_passes(orchestrator, namespace, name, loop, max_passes)
    raise SystemExit(0 if result.success or result.skipped else 1)


def _reconcile_passes(
    orchestrator: InventoryOrchestrator,
    namespace: str,
    name: str,
    loop: bool,
    max_passes: int | None,
) -> ReconcileResult:
    """패스 반복 실행 (마지막 결과 반환)"""
    passes = 0
    while True:
        result = orchestrator.reconcile(namespace, name)
        passes += 1
        print_pass_result(namespace, name, result)

        if not loop or result.requeue_after is None:
            return result
        if max_passes is not None and passes >= max_passes:
            return result

        logger.info("%s/%s 다음 패스까지 %s 대기", namespace, name, result.requeue_after)
        time.sleep(result.requeue_after.total_seconds())


# =============================================================================
# 리포트 변환
# =============================================================================


@cli.command("format")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", default=None, help="마크다운 출력 파일 경로")
def format_cmd(file: str, output: str | None) -> None:
    """CloudInventoryReport 파일(JSON/YAML)을 마크다운으로 변환"""
    with open(file, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        print_error(f"리포트 형식이 올바르지 않습니다: {file}")
        raise SystemExit(1)

    _write_markdown(build_inventory_markdown(InventoryReport.from_dict(data)), output)


if __name__ == "__main__":
    cli()
