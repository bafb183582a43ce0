"""HTTP application: JSON API, sign-out, health check and server-rendered pages."""

from __future__ import annotations

import argparse
import logging
import os
import secrets
import time
import uuid
from dataclasses import asdict
from datetime import timedelta
from html import escape
from typing import Any, Mapping, Sequence

from flask import Flask, Response, g, jsonify, redirect, request, session

from gritwit import services
from gritwit.auth import AuthUser, ServerError, clean_error, clear_session, current_user
from gritwit.catalog import (
    category_badge,
    category_class,
    category_select_options,
    to_embed_url,
)
from gritwit.models import Exercise
from gritwit.navigation import Page, avatar_badge, nav_tabs, resolve_page
from gritwit.selection import SelectOption, multi_select_label, selected_chips
from gritwit.store import Store

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
SESSION_LIFETIME = timedelta(hours=24)
DEFAULT_CATEGORY = "conditioning"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

_HEAD = (
    '<meta charset="utf-8"/>'
    '<meta name="viewport" content="width=device-width, initial-scale=1, viewport-fit=cover"/>'
    '<link rel="icon" type="image/png" href="/favicon.png"/>'
    '<link rel="apple-touch-icon" href="/apple-touch-icon.png"/>'
    '<link rel="manifest" href="/manifest.json"/>'
    '<meta name="theme-color" content="#0f0f1a"/>'
    '<meta name="apple-mobile-web-app-capable" content="yes"/>'
    '<meta name="apple-mobile-web-app-status-bar-style" content="black-translucent"/>'
    '<meta name="apple-mobile-web-app-title" content="GrindIt"/>'
    '<link rel="stylesheet" id="leptos" href="/pkg/gritwit.css"/>'
    "<title>GrindIt</title>"
)


def _user_json(user: AuthUser) -> dict[str, Any]:
    data = asdict(user)
    data["role"] = str(user.role)
    return data


def _field(payload: Mapping[str, Any], key: str, required: bool = False) -> str:
    value = payload.get(key)
    if value is None:
        if required:
            raise ServerError(f"missing field `{key}`")
        return ""
    return str(value)


def _json_body() -> Mapping[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _viewer(store: Store) -> AuthUser | None:
    try:
        return current_user(session, store)
    except ServerError:
        return None


# ---- page fragments ----


def _header(user: AuthUser | None) -> str:
    avatar = ""
    badge = avatar_badge(user)
    if badge is not None:
        kind, value = badge
        if kind == "image":
            inner = (
                f'<img src="{escape(value)}" class="top-bar__avatar-img"'
                ' referrerpolicy="no-referrer"/>'
            )
        else:
            inner = f'<span class="top-bar__avatar-initials">{escape(value)}</span>'
        avatar = f'<a href="/profile" class="top-bar__avatar">{inner}</a>'
    return (
        '<header class="top-bar">'
        '<span class="top-bar__logo">Grind<span class="top-bar__flame"></span>t</span>'
        '<div class="top-bar__actions">'
        '<button class="theme-toggle">'
        '<span class="theme-icon theme-icon--sun"></span>'
        '<span class="theme-icon theme-icon--moon"></span>'
        "</button>"
        f"{avatar}</div></header>"
    )


def _bottom_nav(pathname: str, is_admin: bool) -> str:
    items = "".join(
        f'<a href="{tab.href}" class="tab-item{" active" if tab.active else ""}">'
        f'<span class="tab-icon tab-icon--{tab.icon}"></span>'
        f'<span class="tab-label">{escape(tab.label)}</span></a>'
        for tab in nav_tabs(pathname, is_admin)
    )
    return f'<nav class="bottom-nav">{items}</nav>'


def _exercise_form() -> str:
    options = "".join(
        f'<option value="{escape(value)}"'
        f'{" selected" if value == DEFAULT_CATEGORY else ""}>{escape(label)}</option>'
        for value, label in category_select_options()
    )
    return (
        '<form class="exercise-form" method="post" action="/exercises">'
        '<input type="text" name="name" placeholder="Exercise name"/>'
        '<div class="form-row">'
        f'<select name="category" class="single-select">{options}</select>'
        '<input type="text" name="movement_type" placeholder="Type (e.g. Olympic)"/>'
        "</div>"
        '<input type="text" name="description" placeholder="Description (optional)"/>'
        '<input type="text" name="demo_video_url" class="video-url-input"'
        ' placeholder="Paste YouTube or Vimeo URL"/>'
        '<button type="submit" class="form-submit">Add Movement</button>'
        "</form>"
    )


def _exercise_card(exercise: Exercise, coach: bool) -> str:
    parts = [
        '<div class="exercise-card-top">',
        f'<span class="exercise-badge {category_class(exercise.category)}">'
        f"{category_badge(exercise.category)}</span>",
    ]
    if coach:
        parts.append(
            f'<form method="post" action="/exercises/{escape(exercise.id)}/delete">'
            '<button class="exercise-delete">×</button></form>'
        )
    parts.append("</div>")
    parts.append(f'<h3 class="exercise-name">{escape(exercise.name)}</h3>')
    if exercise.movement_type is not None:
        parts.append(f'<span class="exercise-type">{escape(exercise.movement_type)}</span>')
    css = "exercise-card"
    if exercise.demo_video_url is not None:
        css += " exercise-card--has-video"
        src = exercise.demo_video_url
        embed = to_embed_url(src)
        if embed is not None:
            parts.append(
                f'<iframe class="exercise-video" src="{escape(embed)}"'
                ' allow="accelerometer; autoplay; clipboard-write; encrypted-media;'
                ' gyroscope; picture-in-picture" allowfullscreen></iframe>'
            )
        else:
            parts.append(
                f'<video class="exercise-video" src="{escape(src)}" controls playsinline'
                ' preload="metadata"></video>'
            )
    return f'<div class="{css}">{"".join(parts)}</div>'


def _exercises_page(store: Store, user: AuthUser | None) -> str:
    coach = services.is_coach(user)
    filters = request.args.getlist("category")
    options = [SelectOption(value, label) for value, label in category_select_options()]
    chips = "".join(
        f'<span class="multi-select__chip">{escape(option.label)}</span>'
        for option in selected_chips(options, filters)
    )
    parts = ['<div class="exercises-page">']
    if coach:
        parts.append(_exercise_form())
    parts.append(
        '<div class="multi-select"><span class="multi-select__label">'
        f'{escape(multi_select_label(filters, "All Categories"))}</span>'
        f'<div class="multi-select__chips">{chips}</div></div>'
    )
    try:
        exercises = services.list_exercises(store)
    except ServerError as exc:
        parts.append(f'<p class="error">Error: {escape(clean_error(exc))}</p>')
    else:
        if not exercises:
            parts.append(
                '<div class="empty-state"><p class="empty-title">No movements yet</p>'
                '<p class="empty-sub">Tap + to build your library</p></div>'
            )
        else:
            cards = "".join(
                _exercise_card(exercise, coach)
                for exercise in services.filter_exercises(exercises, filters)
            )
            parts.append(f'<div class="exercise-grid">{cards}</div>')
    parts.append("</div>")
    return "".join(parts)


def _admin_page(store: Store) -> str:
    try:
        users = services.list_all_users(store, session)
    except ServerError as exc:
        return f'<div class="admin-page"><p class="error">Error: {escape(clean_error(exc))}</p></div>'
    rows = []
    for user in users:
        role = str(user.role)
        action = services.role_action(user)
        controls = ""
        if action is not None:
            controls = (
                '<form class="role-actions" method="post" action="/admin/role">'
                f'<input type="hidden" name="user_id" value="{escape(user.id)}"/>'
                f'<input type="hidden" name="new_role" value="{action.new_role}"/>'
                f'<button class="role-btn {action.css_class}">{escape(action.label)}</button>'
                "</form>"
            )
        rows.append(
            '<div class="user-row">'
            f'<div class="user-avatar">{escape(user.initials())}</div>'
            '<div class="user-info">'
            f'<span class="user-name">{escape(user.display_name)}</span>'
            f'<span class="user-email">{escape(user.identifier())}</span></div>'
            '<div class="user-role-controls">'
            f'<span class="role-badge role-badge--{role}">{role.upper()}</span>'
            f"{controls}</div></div>"
        )
    return f'<div class="admin-page"><div class="users-list">{"".join(rows)}</div></div>'


def _page_body(page: Page, store: Store, user: AuthUser | None) -> str:
    if page is Page.EXERCISES:
        return _exercises_page(store, user)
    if page is Page.ADMIN:
        return _admin_page(store)
    if page is Page.LOGIN:
        return '<div class="login-page"><h1>Sign in to GrindIt</h1></div>'
    if page is Page.NOT_FOUND:
        return "Page not found."
    return f'<div class="{page.value}-page"></div>'


def _render(store: Store, path: str) -> Response:
    user = _viewer(store)
    page = resolve_page(path, user is not None)
    is_admin = services.role_action(user) is None if user is not None else False
    html = (
        '<!DOCTYPE html><html lang="en">'
        f"<head>{_HEAD}</head><body>"
        f"{_header(user)}<main>{_page_body(page, store, user)}</main>"
        f"{_bottom_nav(path, is_admin)}"
        "</body></html>"
    )
    status = 404 if page is Page.NOT_FOUND else 200
    return Response(html, status=status, mimetype="text/html")


# ---- application ----


def create_app(store: Store, secret_key: str, production: bool = False) -> Flask:
    """Build the web application around ``store``."""
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_SECURE=production,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_HTTPONLY=True,
        PERMANENT_SESSION_LIFETIME=SESSION_LIFETIME,
    )

    @app.before_request
    def _start_request() -> None:
        g.started = time.perf_counter()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        session.permanent = True

    @app.after_request
    def _finish_request(response: Response) -> Response:
        response.headers[REQUEST_ID_HEADER] = g.get("request_id", str(uuid.uuid4()))
        latency_ms = int((time.perf_counter() - g.get("started", time.perf_counter())) * 1000)
        logger.info(
            "response method=%s uri=%s request_id=%s status=%d latency_ms=%d",
            request.method, request.full_path, response.headers[REQUEST_ID_HEADER],
            response.status_code, latency_ms,
        )
        return response

    @app.errorhandler(ServerError)
    def _server_error(exc: ServerError):
        return jsonify(error=clean_error(exc)), 500

    # ---- API ----

    @app.get("/api/v1/health_check")
    def health_check():
        return Response(status=200)

    @app.get("/api/me")
    def get_me():
        user = current_user(session, store)
        if user is None:
            logger.info("get_me: no session found")
            return jsonify(None)
        logger.info("get_me: authenticated as %s", user.identifier())
        return jsonify(_user_json(user))

    @app.get("/api/exercises")
    def api_list_exercises():
        return jsonify([asdict(e) for e in services.list_exercises(store)])

    @app.post("/api/exercises")
    def api_create_exercise():
        payload = _json_body()
        exercise_id = services.create_exercise(
            store, session,
            _field(payload, "name", required=True),
            _field(payload, "category", required=True),
            _field(payload, "movement_type"),
            _field(payload, "description"),
            _field(payload, "demo_video_url"),
        )
        return jsonify(id=exercise_id), 201

    @app.put("/api/exercises/<exercise_id>")
    def api_update_exercise(exercise_id: str):
        payload = _json_body()
        services.update_exercise(
            store, session, exercise_id,
            _field(payload, "name", required=True),
            _field(payload, "category", required=True),
            _field(payload, "movement_type"),
            _field(payload, "description"),
            _field(payload, "demo_video_url"),
        )
        return Response(status=204)

    @app.delete("/api/exercises/<exercise_id>")
    def api_delete_exercise(exercise_id: str):
        services.delete_exercise(store, session, exercise_id)
        return Response(status=204)

    @app.get("/api/users")
    def api_list_users():
        return jsonify([_user_json(u) for u in services.list_all_users(store, session)])

    @app.post("/api/users/<user_id>/role")
    def api_change_role(user_id: str):
        payload = _json_body()
        services.change_user_role(store, session, user_id, _field(payload, "role", required=True))
        return Response(status=204)

    # ---- auth ----

    @app.get("/auth/logout")
    def logout():
        clear_session(session)
        return redirect("/", code=307)

    # ---- forms ----

    @app.post("/exercises")
    def submit_exercise_form():
        name = request.form.get("name", "")
        if name:
            services.create_exercise(
                store, session, name,
                request.form.get("category") or DEFAULT_CATEGORY,
                request.form.get("movement_type", ""),
                request.form.get("description", ""),
                request.form.get("demo_video_url", ""),
            )
        return redirect("/exercises", code=303)

    @app.post("/exercises/<exercise_id>/delete")
    def submit_exercise_delete(exercise_id: str):
        services.delete_exercise(store, session, exercise_id)
        return redirect("/exercises", code=303)

    @app.post("/admin/role")
    def submit_role_change():
        services.change_user_role(
            store, session, request.form.get("user_id", ""), request.form.get("new_role", "")
        )
        return redirect("/admin", code=303)

    # ---- pages ----

    @app.get("/")
    def index():
        return _render(store, "/")

    @app.get("/<path:path>")
    def page(path: str):
        return _render(store, "/" + path)

    return app


def main(argv: Sequence[str] | None = None) -> int:
    """Serve the application from a SQLite database."""
    parser = argparse.ArgumentParser(prog="gritwit", description="Run the workout tracker.")
    parser.add_argument(
        "--database", default=os.environ.get("GRITWIT_DATABASE", "gritwit.db"),
        help="path of the SQLite database file",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    production = os.environ.get("APP_ENVIRONMENT", "").lower() == "production"
    secret_key = os.environ.get("GRITWIT_SECRET_KEY") or secrets.token_hex(32)

    with Store(args.database) as store:
        app = create_app(store, secret_key, production)
        logger.info("listening on http://%s:%d", args.host, args.port)
        app.run(host=args.host, port=args.port)
    return 0