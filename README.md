# faultkit

Building blocks for fault injection. A trigger decides, call by call, whether
an intercepted function should fail. The package also has tools that work out
which values a function can return and that score those results against a
reference table.

## Installation

```
pip install faultkit
```

To run the test suite:

```
pip install "faultkit[test]"
pytest
```

## Triggers

Every trigger derives from `faultkit.base.Trigger`. You configure it from an XML
`<args>` element with `configure(element)`. The element may be an
`xml.etree.ElementTree.Element` or the XML text itself. You then call
`evaluate(function_name, *args)` for each intercepted call. It returns `True`
when a fault should be injected.

Triggers built with the same `faultkit.base.Settings` object share its state:

- `enabled`, the global switch;
- `switch_panel`, 50 slots read by `SwitchPanel`;
- `random_seed`, used by `RandomTrigger`;
- `start_time`, used by `TimerTrigger`.

Each trigger also has its own `enabled` and `verbose` attributes. Both can be
set as keyword arguments to the constructor. `active()` is true only when the
global switch and the trigger's own switch are both on. A verbose trigger logs
its decisions to `stderr`, or to the `stream` you pass it.

| Module                  | Trigger             | Returns `True` when                                                                                                  |
|-------------------------|---------------------|----------------------------------------------------------------------------------------------------------------------|
| `faultkit.counting`     | `CallCountTrigger`  | the call number (counted from 1, while active) equals one of the `<callcount>` values                               |
|                         | `SingleTrigger`     | it is the first call; when not active, on every call                                                                 |
|                         | `TimerTrigger`      | at least `<wait>` seconds have passed since `Settings.start_time`; from then on it fires on every call              |
|                         | `RandomTrigger`     | a random draw falls below `<percent>`; `reseed(seed)` restarts the sequence at the next call                         |
|                         | `SwitchPanel`       | slot `<index>` of `Settings.switch_panel` is set; verbose by default                                                |
| `faultkit.inspect_args` | `ExamineArgs`       | an argument matches an entry in a reference table (see below)                                                        |
|                         | `ReadInspector`     | the call is `read(fd, buffer, size)` with `fd == 0` and `size == 1024`                                               |
|                         | `SemTrigger`        | the call is anything other than `pthread_mutex_lock` or `pthread_mutex_unlock`; those two update a per-thread `lock_count()` |
| `faultkit.netinspect`   | `NetInspector`      | a decision server, sent `"<function> <length>"`, answers with a leading `1`                                          |
| `faultkit.stacktrace`   | `PrintStackTrigger` | it is active; on its first such call it also writes the current stack to `<file>`                                    |

`RandomTrigger` and `SwitchPanel` both live in `faultkit.chance`.

`ExamineArgs` takes `int_tables` and `string_tables` as keyword arguments. It
reads these configuration elements:

- `<skip>`: the types of leading arguments to pass over;
- `<argType>`: `int`, `string` or `char`;
- `<argCompare>`: `equal`, `and`, `strstr` or `strcmp`;
- `<argBaseArrayChooser>`: which table to use.

The accepted values are listed in the `ArgType` and `CompareMode` enums.

`NetInspector` connects with `socket.create_connection`, or uses a socket you
pass as `connection`. It can be used as a context manager, and `close()` closes
the connection.

Example:

```python
from faultkit.counting import CallCountTrigger

trigger = CallCountTrigger()
trigger.configure("<args><callcount>2</callcount></args>")

trigger.evaluate("unlink")  # False: first call
trigger.evaluate("unlink")  # True: second call
trigger.evaluate("unlink")  # False
```

Two helpers read configuration:

- `faultkit.base.parse_args` returns `(tag, text)` pairs for the child elements
  of an `<args>` element.
- `faultkit.base.c_atoi` reads a leading decimal integer. It returns 0 when the
  text has none.

## Stand-alone injector

`faultkit.switchboard.FaultInjector` combines a 128-slot switch panel with a
random generator. Trigger instances are made and evaluated with these methods:

- `new_switchpanel(name, index)` returns a `SwitchPanelInstance`.
- `new_random(name, percent)` returns a `RandomInstance`.
- `trigger_switchpanel(instance, intercept_name)` and
  `trigger_random(instance, intercept_name)` evaluate an instance.

The first instance created seeds the generator and fills the panel with
`switchpanel_default`, which is 1. Either kind of trigger can be switched off
through `switchpanel_enabled` and `random_enabled`. When switched off, it
returns `switchpanel_disabled_trigger` or `random_disabled_trigger`.

`FaultInjector.unlink(path)` guards file removal. If slot 42 of the panel is set
and a 50% random draw fires, it raises
`OSError(unlink_fake_errno, ..., path)` instead of removing the file. By default
that errno is `EREMOTE`. Otherwise it calls the real unlink function.

## Return-value analysis

`faultkit.sedetector.walk_return_values(graph, start, references=False)` works
on a `ControlFlowGraph`, which holds instruction lists per block and an
adjacency map. It starts from the successors of block `start` and follows the
`eax` register backwards through `mov`, `or` and `xor` instructions, breadth
first. It returns two lists:

- the return values found: hex literals, written with their signed 32-bit value,
  and returning `call`/`int 0x80` lines;
- when `references` is true, the `call` instructions whose results are
  returned. Calls through memory or registers are collapsed into one marker line.

`read_text(path)` and `is_register(target)` are helpers for that analysis.

## Profiling across calls

`faultkit.profiler.ProfilerManager(target_library)` builds a profile for a
function. It runs an external `profiler` executable on
`disassembly/<function>`, and that executable writes the profile to
`profiles/<function>` and the function's references to a reference file. The
manager then appends the profiles of every function listed in the reference
file, building them in turn. By default the executable is looked for in the
working directory; it can be chosen with the `profiler` argument.

When no disassembly exists for a referenced function, the manager runs
`objdump` on the target library over 30 KiB starting at the referenced address.

`strip_plt` and `parse_references` are the helpers the manager uses. From the
command line:

```
faultkit-profiler <function name> <target library>
```

The options `-r`, `-f <arg>` and `-t <arg>` are accepted and ignored.

## Evaluating profiles

`faultkit.errordiff` compares reported error values with documented ones:

- `score_function(name, expected, reported)` returns a `FunctionScore`. It holds
  the number of values found, the number missing, the number of false positives,
  and an integer accuracy percentage.
- `compare_tables` scores every function that appears in both tables.
- `format_report` renders the rows and the average accuracy.
- `normalize_syscall_errors` turns raw negative syscall returns into errno
  values. Anything below -500 is counted as `EINTR`.

From the command line:

```
faultkit-errordiff expected.json reported.json [--syscalls]
```

Each file is a JSON object that maps function names to lists of error values.
Each list is cut at the end marker 12345. With `--syscalls`, the keys are
syscall numbers, the end marker is 0, and the reported values are normalised as
above.

## What this package does not do

- It does not intercept calls in running programs. Triggers only make the
  decision; something else has to call `evaluate` and inject the fault.
- It does not turn disassembly text into a `ControlFlowGraph`, and it ships no
  `profiler` executable. `ProfilerManager` needs one supplied.
- It includes no documented or reported error tables. `faultkit-errordiff` must
  be given both.