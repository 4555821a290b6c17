from __future__ import annotations

from typing import Any

from clustering.snapshot import LiveLayout
from editor.hit_test import ConnectorLine
from layers.types import EntityKey
from render.grid import cluster_box
from session.context import AnalysisSession

Point = tuple[float, float]

ROAD_COLOR = "rgba(96, 96, 96, 0.9)"
CONNECTOR_COLOR = "rgba(139, 0, 0, 0.8)"
CLUSTER_BORDER = "#8B0000"
SITE_COLOR = "rgba(220, 38, 38, 0.9)"


def _rendered(
    session: AnalysisSession,
    entity: EntityKey,
    original: Point,
    preview: tuple[EntityKey, Point] | None,
) -> Point:
    if preview is not None and preview[0] == entity:
        return preview[1]
    return session.rendered_position(entity, original)


def trace_roads(session: AnalysisSession) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    xs: list[float | None] = []
    ys: list[float | None] = []
    labels: list[dict[str, Any]] = []
    for r in session.projected_roads():
        for x, y in r.path:
            xs.append(x)
            ys.append(y)
        xs.append(None)
        ys.append(None)

        entity = EntityKey.for_road(r.road.index)
        lx, ly = session.rendered_position(entity, r.anchor)
        labels.append(
            {
                "x": lx,
                "y": ly,
                "text": r.road.name or r.road.type,
                "showarrow": False,
                "textangle": session.overlays.rotation(entity.key),
                "font": {"size": session.overlays.size(entity)},
                "name": entity.line_id,
            }
        )
    trace = {
        "type": "scatter",
        "name": "Roads",
        "x": xs,
        "y": ys,
        "mode": "lines",
        "line": {"color": ROAD_COLOR, "width": 3},
        "hoverinfo": "skip",
        "showlegend": False,
    }
    return trace, labels


def trace_connectors(lines: list[ConnectorLine]) -> list[dict[str, Any]]:
    if not lines:
        return []
    xs: list[float | None] = []
    ys: list[float | None] = []
    bx: list[float] = []
    by: list[float] = []
    for line in lines:
        for x, y in line.path:
            xs.append(x)
            ys.append(y)
        xs.append(None)
        ys.append(None)
        for x, y in line.bends:
            bx.append(x)
            by.append(y)
    out = [
        {
            "type": "scatter",
            "name": "Connectors",
            "x": xs,
            "y": ys,
            "mode": "lines",
            "line": {"color": CONNECTOR_COLOR, "width": 1.5, "dash": "dot"},
            "hoverinfo": "skip",
            "showlegend": False,
        }
    ]
    if bx:
        out.append(
            {
                "type": "scatter",
                "name": "Bend points",
                "x": bx,
                "y": by,
                "mode": "markers",
                "marker": {"size": 8, "color": CONNECTOR_COLOR},
                "hoverinfo": "skip",
                "showlegend": False,
            }
        )
    return out


def build_scene(session: AnalysisSession) -> dict[str, Any]:
    """
    Plotly figure dict of the current layout, in surface pixels (y grows downwards).

    Clusters render as boxes with a logo grid, singletons as logo markers, roads as
    polylines with rotatable labels, dragged elements with a connector back to their
    computed position.
    """
    layout: LiveLayout = session.layout()
    originals = session.original_positions(layout)
    preview = session.controller.preview()
    overlays = session.overlays

    data: list[dict[str, Any]] = []
    shapes: list[dict[str, Any]] = []
    images: list[dict[str, Any]] = []

    roads_trace, annotations = trace_roads(session)
    data.append(roads_trace)

    lines = session.connector_lines()
    if preview is not None:
        entity, end = preview
        start = originals.get(entity)
        if start is not None:
            lines = [ln for ln in lines if ln.entity != entity]
            lines.append(
                ConnectorLine(
                    entity=entity,
                    start=start,
                    end=end,
                    bends=tuple(overlays.break_path(entity)),
                )
            )
    data.extend(trace_connectors(lines))

    # Singletons
    sx: list[float] = []
    sy: list[float] = []
    s_text: list[str] = []
    s_ids: list[str] = []
    s_sizes: list[float] = []
    for c in layout.singletons:
        entity = EntityKey.for_poi(c.ref.category, c.poi.id)
        x, y = _rendered(session, entity, originals[entity], preview)
        size = overlays.size(entity)
        sx.append(x)
        sy.append(y)
        s_text.append(c.poi.name)
        s_ids.append(entity.line_id)
        s_sizes.append(size)
        if c.poi.logo_url:
            images.append(
                {
                    "source": c.poi.logo_url,
                    "x": x,
                    "y": y,
                    "sizex": size,
                    "sizey": size,
                    "xanchor": "center",
                    "yanchor": "middle",
                    "xref": "x",
                    "yref": "y",
                }
            )
    data.append(
        {
            "type": "scatter",
            "name": "POIs",
            "x": sx,
            "y": sy,
            "mode": "markers",
            "text": s_text,
            "customdata": s_ids,
            "marker": {"size": s_sizes, "color": "rgba(30, 136, 229, 0.35)"},
            "hovertemplate": "%{text}<extra></extra>",
        }
    )

    # Clusters
    for cl in layout.clusters:
        entity = EntityKey.for_cluster(cl.id)
        x, y = _rendered(session, entity, originals[entity], preview)
        w_add, h_add = overlays.reshape(cl.id)
        box = cluster_box(
            len(cl.members),
            size=overlays.size(entity, cl.size),
            width_add=w_add,
            height_add=h_add,
        )
        shapes.append(
            {
                "type": "rect",
                "x0": x - box.width / 2.0,
                "y0": y - box.height / 2.0,
                "x1": x + box.width / 2.0,
                "y1": y + box.height / 2.0,
                "line": {"color": CLUSTER_BORDER, "width": 1.5},
                "fillcolor": "white",
                "name": entity.line_id,
            }
        )
        cx = [x + dx for dx, _ in box.cells]
        cy = [y + dy for _, dy in box.cells]
        members = [session.poi(ref) for ref in cl.members]
        for poi, px, py in zip(members, cx, cy):
            if poi.logo_url:
                images.append(
                    {
                        "source": poi.logo_url,
                        "x": px,
                        "y": py,
                        "sizex": box.logo_size,
                        "sizey": box.logo_size,
                        "xanchor": "center",
                        "yanchor": "middle",
                        "xref": "x",
                        "yref": "y",
                    }
                )
        data.append(
            {
                "type": "scatter",
                "name": cl.id,
                "x": cx,
                "y": cy,
                "mode": "markers",
                "text": [p.name for p in members],
                "customdata": [entity.line_id] * len(members),
                "marker": {"size": box.logo_size, "opacity": 0.0},
                "hovertemplate": "%{text}<extra></extra>",
                "showlegend": False,
            }
        )

    # Site marker
    site = EntityKey.site()
    x, y = _rendered(session, site, originals[site], preview)
    r = session.site_radius()
    shapes.append(
        {
            "type": "circle",
            "x0": x - r,
            "y0": y - r,
            "x1": x + r,
            "y1": y + r,
            "line": {"color": SITE_COLOR, "width": 2},
            "fillcolor": SITE_COLOR,
            "name": site.line_id,
        }
    )

    clustered = sum(len(c.members) for c in layout.clusters)
    stats = {
        "clusters": len(layout.clusters),
        "clusteredPois": clustered,
        "individualPois": len(layout.singletons),
        "roads": len(annotations),
        "dragged": {k: len(v) for k, v in overlays.positions.items()},
        "breakLines": len(overlays.break_paths),
        "mode": session.controller.mode.value,
    }

    return {
        "data": data,
        "layout": {
            "width": session.width,
            "height": session.height,
            "xaxis": {"range": [0, session.width], "visible": False},
            "yaxis": {"range": [session.height, 0], "visible": False},
            "margin": {"l": 0, "r": 0, "t": 0, "b": 0},
            "showlegend": False,
            "shapes": shapes,
            "images": images,
            "annotations": annotations,
            "meta": {"analysisId": session.analysis_id, "stats": stats},
        },
    }
