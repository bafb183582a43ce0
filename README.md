# gritwit

A small workout tracking web application backed by SQLite. Athletes log
workouts and scores, coaches maintain an exercise library and program
WODs (workouts of the day), and admins manage user roles.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running the server

```
gritwit
```

`gritwit` (`gritwit.web.main`) opens the SQLite database and serves the
Flask application built by `gritwit.web.create_app`. Options:

- `--database PATH` – database file (default: `$GRITWIT_DATABASE`, else `gritwit.db`)
- `--host HOST` – address to listen on (default `0.0.0.0`)
- `--port PORT` – port to listen on (default `3000`)

Environment:

- `GRITWIT_SECRET_KEY` – key used to sign session cookies; a random key is
  generated at each start when it is unset, so sessions do not survive a restart.
- `APP_ENVIRONMENT=production` – marks session cookies as secure.

Sessions last 24 hours. Every response carries an `x-request-id` header
(taken from the request when present, otherwise generated).

### Routes

- `GET /api/v1/health_check` – empty 200 response
- `GET /api/me` – the signed-in user as JSON, or `null`
- `GET /api/exercises` – the exercise library
- `POST /api/exercises` – create an exercise (coach or admin); JSON body with
  `name`, `category` and optional `movement_type`, `description`, `demo_video_url`
- `PUT /api/exercises/<id>` / `DELETE /api/exercises/<id>` – edit or remove (coach or admin)
- `GET /api/users` – all users (admin)
- `POST /api/users/<id>/role` – JSON body `{"role": "athlete" | "coach" | "admin"}` (admin)
- `GET /auth/logout` – clears the session and redirects to `/`
- HTML pages: `/`, `/exercises`, `/wod`, `/login`, `/log`, `/history`,
  `/profile`, `/admin`; signed-out visitors of the home, log, history,
  profile and admin pages are shown the login page.

Failed permission checks and other `ServerError`s answer with status 500
and a JSON body `{"error": "..."}`.

## Using it as a library

```python
from gritwit.scoring import compute_score_value, streak_days
from gritwit.catalog import to_embed_url, category_badge

# AMRAP and EMOM score as rounds * 1000 + extra reps
compute_score_value("amrap", None, 5, 12, None)   # 5012

# For time scores are the finish time in seconds (lower is better)
compute_score_value("fortime", 325, None, None, None)   # 325

to_embed_url("https://youtu.be/abc123")
# 'https://www.youtube.com/embed/abc123?playsinline=1&enablejsapi=1'

category_badge("weightlifting")   # 'WL'
category_badge("unknown")         # 'GEN'
```

Modules:

- `gritwit.models` – dataclasses for exercises, workout logs, WODs, sections,
  movements, scores and leaderboard entries.
- `gritwit.scoring` – `compute_score_value`, `overall_rx`, `score_order`,
  `streak_days`, `parse_date`.
- `gritwit.auth` – `UserRole`, `AuthUser`, `ServerError`, and session checks
  (`current_user`, `require_auth`, `require_role`, `auth_context`,
  `set_user_id`, `clear_session`) over any mutable mapping used as a session.
- `gritwit.store` – `Store`, a context manager over one SQLite database
  (default `:memory:`) for users, exercises, workout logs, custom workouts,
  counts, streaks and the weekly leaderboard. Emails passed as
  `hidden_emails` are left off the leaderboard unless the viewer is an admin
  or that user. Failures raise `StoreError` / `RowNotFound`.
- `gritwit.wod_store` – `WodStore`, a `Store` that adds WODs, sections,
  movements, score submission, section leaderboards and personal bests.
- `gritwit.catalog` – exercise categories, badges, CSS classes and video embed URLs.
- `gritwit.selection` – dropdown filtering and selection helpers and `ConfirmDialog`.
- `gritwit.navigation` – bottom navigation tabs, page resolution and the header avatar.
- `gritwit.services` – exercise and user administration operations with role checks.

## What it does not do

- There is no sign-in: no password login or registration and no external
  identity provider. A session becomes signed in only through
  `gritwit.auth.set_user_id`, so over HTTP every visitor is anonymous unless
  the application is driven from code.
- WOD programming and scoring are available only through `WodStore`; the
  web application has no routes for them, and the home, WOD, log, history
  and profile pages render empty containers.
- Demo videos are links only; there is no file upload or video storage.
- The server uses Flask's built-in development server.