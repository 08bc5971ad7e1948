# lktool

`lktool` is a library of helpers for working with real-time media projects:

- keeping a list of projects and their credentials in a per-user CLI config,
- reading and writing a project's `livekit.toml`,
- preparing hosted agents: finding secrets files, rewriting a `Dockerfile`
  entrypoint, and packing a directory into a gzipped tarball for upload,
- bootstrapping projects from templates: fetching the template index and
  sandbox details, filling in `.env` files and cleaning up cloned templates,
- load-test bookkeeping: probe samples, per-track statistics and summaries,
  video clip specifications and subscription layouts.

It needs Python 3.11 or later.

## Layout

| Module | What it holds |
| --- | --- |
| `lktool.strings` | `map_strings`, `wrap_with`, `ellipsize_to`, `wrap_to_lines`, `hash_string`, `url_safe_name`, `extract_subdomain` |
| `lktool.console` | `accented`, `dimmed`, `Table`, `create_table`, `print_json` |
| `lktool.config` | `CLIConfig`, `ProjectConfig`, `config_location`, `load_or_create`, `load_default_project`, `load_project`, `load_project_by_subdomain` |
| `lktool.livekit_toml` | `LiveKitTOML`, `LiveKitTOMLProjectConfig`, `LiveKitTOMLAgentConfig`, `InvalidConfigError`, `load_toml_file` |
| `lktool.agentfs.utils` | `is_python`, `is_node`, `parse_quantity`, `parse_cpu`, `parse_mem`, `validate_settings_map`, `agents_url` |
| `lktool.agentfs.secrets` | `parse_env_file`, `detect_env_file` |
| `lktool.agentfs.tarball` | `collect_exclude_patterns`, `build_tarball`, `upload_tarball` |
| `lktool.agentfs.docker` | `has_dockerfile`, `resolve_entrypoint`, `rewrite_entrypoint` |
| `lktool.bootstrap` | `Template`, `SandboxDetails`, `fetch_templates`, `fetch_sandbox_details`, `parse_taskfile`, `.env` handling, `clone_template`, `cleanup_template`, `autodetect_web_package_managers` |
| `lktool.provider.specs` | `VideoSpec`, `VideoLayer`, `VideoQuality`, `create_specs`, `circles_spec`, `VideoCatalog` |
| `lktool.loadtester.probe` | `LoadTestProvider`, `LoadTestDepacketizer` |
| `lktool.loadtester.stats` | `TrackStats`, `TesterStats`, `Summary`, `tester_summary`, `test_summary` |
| `lktool.loadtester.layout` | `Layout`, `layout_from_string`, `num_to_subscribe`, `target_quality`, `dimensions_for` |

## Examples

Shortening and wrapping text:

```python
from lktool.strings import ellipsize_to, wrap_to_lines

ellipsize_to("This is some long string that should be ellipsized", 12)
# 'This is s...'

wrap_to_lines("This is a long string that should be wrapped to multiple lines", 10)
# ['This is a', 'long', 'string', 'that', 'should be', 'wrapped to', 'multiple', 'lines']
```

Finding the project a URL belongs to:

```python
from lktool.strings import extract_subdomain, url_safe_name

extract_subdomain("wss://my-project-abc123.example.com")
# 'my-project-abc123'
url_safe_name("https://my-project-abc123.example.com")
# 'my-project'
```

Resource quantities for hosted agents:

```python
from lktool.agentfs.utils import parse_cpu, parse_mem

parse_cpu("500m")          # 0.5
parse_mem("1Gi", True)     # '1GB'
parse_mem("512Mi", False)  # '0.5'
```

`agents_url` turns a project URL into the hosted-agents service URL; the
`LK_AGENTS_URL` environment variable overrides it, and URLs of local servers
are used as they are.

Reading a secrets file:

```python
from lktool.agentfs.secrets import parse_env_file

env = parse_env_file(".env")
```

`detect_env_file(None, choose)` looks for `.env.production`, `.env`,
`.env.staging`, `.env.development`, `.env.local` and `.env.test` in the current
directory and lets `choose` pick one of them; without `choose` the first found
is used.

Packing an agent directory. `Dockerfile`, `.dockerignore`, `.gitignore`,
`.git`, `node_modules` and `*.env` are always left out, together with whatever
the directory's `.gitignore` and `.dockerignore` list and any extra patterns
you pass. Symbolic links are stored as the files they point to:

```python
from lktool.agentfs.tarball import build_tarball, upload_tarball

archive = build_tarball("my-agent", ["*.log"])
upload_tarball("my-agent", presigned_url, ["*.log"])  # HTTP PUT, application/gzip
```

Pointing a Dockerfile at a different entrypoint:

```python
from lktool.agentfs.docker import rewrite_entrypoint

rewrite_entrypoint('FROM python\nCMD ["python", "main.py", "start"]', "main.py", "agent.py")
# 'FROM python\nCMD ["python","agent.py","start"]\n'
```

Choosing how many remote participants a tester subscribes to, and at what
quality:

```python
from lktool.loadtester.layout import dimensions_for, layout_from_string, num_to_subscribe, target_quality
from lktool.provider.specs import VideoQuality

layout = layout_from_string("3x3")
num_to_subscribe(layout, True)      # 9
quality = target_quality(layout, [])  # VideoQuality.MEDIUM
dimensions_for(quality)             # (640, 360)
```

## Template index

`fetch_templates()` reads the index location from the `LK_TEMPLATE_INDEX_URL`
environment variable and raises `RuntimeError` when it is not set.
`clone_template` runs `git clone --depth=1`, so `git` must be on `PATH`.

## The CLI config file

Projects are kept in `~/.livekit/cli-config.yaml` unless another path is
passed. Because the file holds API secrets, it is written with mode `0600`,
and a warning is printed to standard error when it can be read by anyone other
than its owner.

## What it does not do

`lktool` is a library only: it installs no command. It does not connect to
media rooms, publish or subscribe to tracks, or run load tests; it provides the
specifications, probe samples, statistics and layout rules such a tester uses.
It does not read or loop media files (H.264, VP8 or Opus), and it does not run
the tasks listed in a template's `taskfile.yaml`, only parses the file.

## Running the tests

Install the `test` extra and run pytest from the project root.