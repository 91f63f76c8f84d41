from ocpt_miner.exporter import hierarchy, ptml
