"""Vehicle telemetry API: reshapes InfluxDB telemetry into chart and map series."""
