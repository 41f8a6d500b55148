"""Tests for customize module."""

from pvefleet.customize import HOTPLUG_RULE_PATH, customization_steps, host_setup_steps

IMAGE = "/tmp/proxmox-scripts/ubuntu-24.04-server-cloudimg-amd64.img"


def test_host_setup_installs_packages():
    """Test host tooling is installed with apt update then apt install."""
    steps = host_setup_steps(["libguestfs-tools"])

    assert len(steps) == 1
    assert [list(c.argv) for c in steps[0].commands] == [
        ["apt", "update"],
        ["apt", "install", "-y", "libguestfs-tools"],
    ]


def test_host_setup_skipped_without_packages():
    """Test no step is produced for an empty package list."""
    assert host_setup_steps([]) == []


def test_customization_order():
    """Test the steps run in the fixed customization order."""
    steps = customization_steps(IMAGE, "+2G", ["zsh", "qemu-guest-agent", "moreutils"])

    assert [s.label for s in steps] == [
        "Expanding hard drive",
        "Installing all updates",
        "Installing custom utilities and guest agent",
        "Enabling CPU hotplug",
        "Resetting the machine ID",
    ]


def test_expand_disk_commands():
    """Test the disk is resized then the partition and filesystem grown inside the image."""
    expand = customization_steps(IMAGE, "+2G", [])[0]
    argvs = [list(c.argv) for c in expand.commands]

    assert argvs[0] == ["qemu-img", "resize", IMAGE, "+2G"]
    assert [argv[-1] for argv in argvs[1:]] == [
        "apt update -y && apt install cloud-guest-utils -y",
        "growpart /dev/sda 1",
        "resize2fs /dev/sda1",
    ]
    for argv in argvs[1:]:
        assert argv[:4] == ["virt-customize", "-a", IMAGE, "--run-command"]


def test_guest_packages_step_omitted_when_empty():
    """Test no package install step is built without guest packages."""
    labels = [s.label for s in customization_steps(IMAGE, "+2G", [])]
    assert "Installing custom utilities and guest agent" not in labels


def test_guest_packages_command():
    """Test all guest packages are installed in one apt call."""
    step = customization_steps(IMAGE, "+2G", ["zsh", "moreutils"])[2]
    assert list(step.commands[0].argv)[-1] == "apt install zsh moreutils -y"


def test_cpu_hotplug_rule_written():
    """Test the udev rule is echoed into the hotplug rules file."""
    step = next(s for s in customization_steps(IMAGE, "+2G", []) if s.label == "Enabling CPU hotplug")
    script = list(step.commands[0].argv)[-1]

    assert script.endswith(f"> {HOTPLUG_RULE_PATH}")
    assert 'SUBSYSTEM=="cpu", ACTION=="add"' in script
    assert 'ATTR{online}="1"' in script


def test_machine_id_reset_uses_trace():
    """Test the machine-id reset runs virt-customize with tracing enabled."""
    step = customization_steps(IMAGE, "+2G", [])[-1]
    assert list(step.commands[0].argv) == [
        "virt-customize", "-x", "-a", IMAGE, "--run-command", "echo -n >/etc/machine-id",
    ]
