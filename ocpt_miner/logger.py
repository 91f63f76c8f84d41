import logging

formatter = logging.Formatter(fmt='%(asctime)s : %(name)s :: %(levelname)-8s :: %(message)s')

logger = logging.getLogger('ocpt_miner')
logger.setLevel(logging.INFO)

console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
console_handler.setLevel(logging.DEBUG)

logger.addHandler(console_handler)


def set_level(level):
    """
    Changes the verbosity of the miner logger

    Parameters
    -----------
    level
        Logging level (int or name, e.g. 'DEBUG')
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)
