"""oslo.config options of the dynamic DNS agent.

Options live in three groups: ``DEFAULT`` for the agent itself,
``ddclient`` for the per-interface ddclient files and ``forwarding`` for the
DHCP nameserver forwarder.  ``list_opts`` is the hook used by
oslo-config-generator to produce a sample configuration file.
"""

from pathlib import Path

from oslo_config import cfg

from ddns_reconciler import DDClientSettings

agent_opts = [
    cfg.StrOpt('instance_name',
               default='default',
               help='Routing instance (VRF) served by this agent. Exported '
                    'to ddclient as DDCLIENT_VRF_NAME.'),
    cfg.StrOpt('desired_state',
               default='/etc/ddns-agent/desired.yaml',
               help='YAML file holding the desired dynamic DNS and '
                    'forwarding state.'),
    cfg.FloatOpt('poll_interval',
                 default=5.0,
                 min=0.1,
                 help='Seconds between checks of the desired state file.'),
    cfg.BoolOpt('wait_for_vrf',
                default=True,
                help='Hold back ddclient instances until the VRF named by '
                     'instance_name exists.'),
    cfg.FloatOpt('systemctl_timeout',
                 default=30.0,
                 help='Seconds to wait for a systemctl call to finish.'),
]

ddclient_opts = [
    cfg.StrOpt('config_dir',
               default='/etc/ddclient',
               help='Directory receiving ddclient_<interface>.conf files.'),
    cfg.StrOpt('run_dir',
               default='/var/run/ddclient',
               help='Directory where ddclient writes its PID files.'),
    cfg.StrOpt('cache_dir',
               default='/var/cache/ddclient',
               help='Directory where ddclient keeps its cache files.'),
    cfg.StrOpt('env_dir_fmt',
               default='/run/dns/%s',
               help='Pattern of the per-interface directory holding '
                    'ddclient.env; %s is replaced by the interface name.'),
]

forwarding_opts = [
    cfg.StrOpt('unit',
               default='dnsmasq.service',
               help='systemd unit of the forwarding resolver.'),
    cfg.StrOpt('lease_file_fmt',
               default='/var/run/dns/dhclient_%s.nameservers',
               help='Pattern of the file the DHCP client hook writes the '
                    'lease nameservers to; %s is the interface name.'),
    cfg.StrOpt('conf_file_fmt',
               default='/etc/dnsmasq.d/dhcp_%s.conf',
               help='Pattern of the generated forwarder configuration; '
                    '%s is the interface name.'),
]


def register_opts(conf):
    """Register every agent option on ``conf``."""
    conf.register_opts(agent_opts)
    conf.register_opts(ddclient_opts, group='ddclient')
    conf.register_opts(forwarding_opts, group='forwarding')


def list_opts():
    return [
        (None, agent_opts),
        ('ddclient', ddclient_opts),
        ('forwarding', forwarding_opts),
    ]


def build_settings(conf):
    """Translate registered options into :class:`DDClientSettings`."""
    return DDClientSettings(
        config_dir=Path(conf.ddclient.config_dir),
        run_dir=Path(conf.ddclient.run_dir),
        cache_dir=Path(conf.ddclient.cache_dir),
        env_dir_fmt=conf.ddclient.env_dir_fmt,
        instance_name=conf.instance_name,
    )
