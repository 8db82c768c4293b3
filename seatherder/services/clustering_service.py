"""
Department clustering checks for seated tables
"""

from typing import Dict, Iterable, Optional

from seatherder.core.config import settings
from seatherder.schemas.seating import ClusteringReport, DepartmentCluster, TableAssignment
from seatherder.services.assignment_service import normalize_department


def detect_clustering(table: TableAssignment, threshold: Optional[int] = None) -> ClusteringReport:
    """Report departments with ``threshold`` or more guests at one table.

    Advisory only: the table is never modified.
    """
    if threshold is None:
        threshold = settings.CLUSTER_THRESHOLD

    counts: Dict[str, int] = {}
    for guest in table.guests:
        department = normalize_department(guest.department)
        if department:
            counts[department] = counts.get(department, 0) + 1

    clusters = [
        DepartmentCluster(department=department, count=count)
        for department, count in counts.items()
        if count >= threshold
    ]
    return ClusteringReport(has_clustering=bool(clusters), clusters=clusters)


def find_clustered_tables(
    tables: Iterable[TableAssignment],
    threshold: Optional[int] = None,
) -> Dict[int, ClusteringReport]:
    """Clustering reports keyed by table number, for clustered tables only"""
    reports = {}
    for table in tables:
        report = detect_clustering(table, threshold)
        if report.has_clustering:
            reports[table.table_number] = report
    return reports
