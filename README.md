# clauditor

Clauditor tracks Claude Code usage across several sessions at the same time. It reads the
session logs that Claude Code writes under `~/.claude/projects` and `~/.config/claude/projects`.
Only `.jsonl` files modified in the last ten hours are read. From them it finds the 5-hour
billing window that is active for the whole account, and shows the token usage of each project
in that window.

## Installation

```
pip install .
```

To also install the test dependencies:

```
pip install ".[test]"
```

## Usage

To print the current billing window once and exit:

```
clauditor
```

To keep watching the session files and refresh the display as they change:

```
clauditor --watch
```

`-w` is the short form of `--watch`. `clauditor --version` prints the version.

Press Ctrl+C to stop watch mode. Even without file-system notifications, watch mode does a full
reload every five seconds.

Sample output:

```
Active billing window
────────────────────────────────────────────────────────────────────────────────

Started 2:00 PM, ends in 3h 12m
Total: 1,234,567 tokens (12,345 tokens/min)

web-app/feature-a                                            72%  888,888 tokens
cli-tool                                                     28%  345,679 tokens
```

Projects are listed with the most tokens first. Names longer than the terminal allows are cut
short with `...`. Project paths are shortened for display: everything after a `Development`
directory is kept, and otherwise the last one or two path components are shown.

## How windows are computed

- A window starts at the top of the hour of the first activity. It lasts exactly five hours.
- Activity five hours or more after the start of a window opens a new window. Only the last
  fifteen hours of activity are considered.
- Only one window is active at a time, and it covers every project.
- A window is active while its end time is still ahead and the last activity was less than
  five hours ago.
- Input, output, cache-creation and cache-read tokens all count towards the totals.
- The burn rate is the total token count divided by the minutes between the window start and
  the last activity.

## Colours

The time remaining is shown in red at 30 minutes or less and in yellow at one hour or less.
Above two hours it is green. The burn rate is green below 50,000 tokens/min and yellow above
100,000. It turns orange above 500,000 and red above 1,000,000. Set `NO_COLOR` or use
`TERM=dumb` to turn colours off.

## Library use

```python
from clauditor.coordinator import get_active_billing_window
from clauditor.display import display_active_window

display_active_window(get_active_billing_window())
```

The modules:

- `clauditor.types`: the data model (`UsageEntry`, `TokenCounts`, `SessionBlock`, ...),
  `floor_to_hour` and `is_block_active`.
- `clauditor.parser`: `parse_line`, `parse_file`, `parse_file_from_position`,
  `parse_file_with_position` and `parse_files` for reading JSONL session logs.
- `clauditor.window`: `find_active_window_period` and the `group_into_single_window*`
  functions.
- `clauditor.scanner`: `SessionScanner`, which finds and loads recent session files.
- `clauditor.position_tracker`: `FilePositionTracker`, which remembers how far each file has
  been read.
- `clauditor.watcher`: `SessionWatcher`, which reports created and modified `.jsonl` files.
- `clauditor.display`: formatting helpers and `display_active_window`.
- `clauditor.coordinator`: `get_active_billing_window`, `load_and_group_sessions`,
  `load_and_group_sessions_incremental` and `ActiveWindowSummary`.

Incremental read positions are kept in `clauditor_positions.json` in the system temporary
directory.