# rnacl

`rnacl` keeps a ledger of *nodes* in a `.rnacl/` directory. Each node has an
optional description, a list of nodes it depends on, and a pipeline of stages.
Each stage runs a registered operation over a batch of samples.

An audit evaluates every node's pipeline and compares the result with an
acknowledged baseline. It reports two kinds of node:

- **dirty** nodes, whose own output changed;
- **stale** nodes, whose recorded dependency outputs changed.

You then acknowledge, or *ack*, the changes you accept, and they move into the
baseline.

## Installation

```
pip install .
```

This installs the `rnacl` command. The package has no third-party runtime
dependencies.

## Quick start

```
rnacl ledger init                 # creates .rnacl/ in the current directory
rnacl node add --description "demo"
rnacl pipeline push - heads.nums --options '{"a": 1, "b": 2}'
rnacl pipeline push - increment --options '{"amount": 10}'
rnacl pipeline eval               # prints the final batch as JSON
rnacl audit                       # lists nodes that differ from the baseline
rnacl ack --all                   # accepts every pending change
```

`node add` selects the new node for reuse for five minutes. Pass `--no-use`
to skip this. While the selection lasts, commands whose node ID is optional may
leave it out, and `-` in place of an ID stands for the selected node. The
selection is kept in `~/.rnacl_reuse_node` and applies only to the ledger it
was made in. Commands find the ledger by searching the working directory and
then each of its parents for a `.rnacl` directory.

Node IDs may be shortened to any prefix that matches exactly one node.

## Commands

- `rnacl ledger init [--dir DIR]`: set up a ledger in `DIR` or the working directory.
- `rnacl node use [ID] [-d DURATION]`: select a node for reuse. The default duration is five minutes. Durations look like `10m`, `1h 30min` or `2days`.
- `rnacl node use`: print the selected node.
- `rnacl node use --unset`: clear the selection.
- `rnacl node add [--id ID] [--description TEXT] [--no-use]`: create a node. The ID is eight random hex digits unless given.
- `rnacl node edit [ID] [--description TEXT | --unset-description]`
- `rnacl node remove [ID]`
- `rnacl node list`: IDs and descriptions.
- `rnacl node show [ID] [--raw | --path]`: details, the stored JSON, or the node's file path.
- `rnacl dep add NODE... [-d DEP]... [--from NODE]... [--mirror]`: add dependencies to each `NODE`.
  - `-d` names a dependency directly.
  - `--from` copies every dependency of another node.
  - `--mirror` makes the listed nodes depend on each other.
  - A node never depends on itself, and a dependency is never added twice.
- `rnacl pipeline push NODE OP [-o JSON] [-i N]`: add a stage. It is appended, or inserted at index `N`.
- `rnacl pipeline pop [NODE] [-i N | --all]`: remove the last stage, the stage at `N`, or every stage.
- `rnacl pipeline eval [NODE] [-s N]... [-a] [-i N]...`: evaluate the pipeline, optionally only at the stages given by `-i`.
  - By default only the last stage's output is printed, as JSON.
  - `-s` prints the output of the chosen stages.
  - `-a` prints the output of every stage.
- `rnacl pipeline list [NODE]`: each stage's operation and options.
- `rnacl operation list`: registered operations with their descriptions.
- `rnacl operation eval OP [--head] [-o JSON]`: run one operation. It reads a batch as JSON from stdin, or uses an empty batch with `--head`.
- `rnacl audit [--dry]`: stores the captured snapshot as pending unless `--dry` is given.
- `rnacl ack [NODE...] [-d DEP]... [-a]`: move differences between the pending snapshot and the baseline into the baseline.
  - Without `NODE` arguments, every node of the pending snapshot is acked.
  - With `-d`, the recorded batches of those dependencies are acked instead of the node's own batch.
  - Unless `-a` is given, each changed sample is shown and you are asked `ack? y/n`.

Short aliases: `l` (ledger), `n` (node), `d` (dep), `p` (pipeline),
`o` (operation), `a` (audit), `s` (node show). Add `-v` one or more times for
more log output. Errors are printed to standard error and the exit status is 1.

## Built-in operations

- `heads.nums`: ignores its input and emits two samples. Their contents are the JSON text of the options `a` and `b`.
- `increment`: adds the integer option `amount` to every sample whose content is an integer.

## Library use

The modules can be used directly. These are the main pieces:

- `rnacl.ledger.Ledger`
- `rnacl.node.Node`
- `rnacl.pipeline.Pipeline` and `rnacl.pipeline.Stage`
- `rnacl.registry.Registry`
- `rnacl.snapshot.Snapshot` and `rnacl.snapshot.BatchDiff`
- `rnacl.commands.Session`
- `rnacl.audit.audit` and `rnacl.audit.ack`

```python
from rnacl.registry import Registry
from rnacl.builtin_ops import register_builtin_ops
from rnacl.pipeline import Pipeline, Stage

registry = Registry()
register_builtin_ops(registry)
pipeline = Pipeline()
pipeline.add(Stage("heads.nums", {"a": 1, "b": 2}))
pipeline.add(Stage("increment", {"amount": 5}))
print([s.content for s in pipeline.eval(registry).samples])  # ['6', '7']
```

To use your own operations, register an `rnacl.operation.Operation` in a
`Registry`. The operation takes a description and a function from a batch and
options to a new batch. Then pass the registry to a `Session` or to
`Ledger.capture_snapshot`.

## Limitations

- `rnacl dep remove` only checks that a ledger is present. It removes nothing, and dependencies can only be removed by editing a node's file.
- The command line knows only the built-in operations. It has no way to load others.